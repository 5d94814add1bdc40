from .election import (
    CohortAssignmentResponse,
    ElectionResultResponse,
    WinningTopicSummary,
)
from .meeting import (
    AttendRequest,
    MeetingCreate,
    MeetingResponse,
    MeetingsResponse,
    MoveDirection,
    MoveRequest,
    ScoreUpdate,
    TopicCreate,
    UserTopic,
    UserTopicsResponse,
)

__all__ = [
    "CohortAssignmentResponse",
    "ElectionResultResponse",
    "WinningTopicSummary",
    "AttendRequest",
    "MeetingCreate",
    "MeetingResponse",
    "MeetingsResponse",
    "MoveDirection",
    "MoveRequest",
    "ScoreUpdate",
    "TopicCreate",
    "UserTopic",
    "UserTopicsResponse",
]
