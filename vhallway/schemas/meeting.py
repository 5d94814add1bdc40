from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class MoveDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class MeetingCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class MeetingResponse(BaseModel):
    meeting_id: int
    name: str
    attending: bool = False


class MeetingsResponse(BaseModel):
    meetings: List[MeetingResponse] = Field(default_factory=list)


class AttendRequest(BaseModel):
    attend: bool = True


class TopicCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)


class UserTopic(BaseModel):
    topic_id: int
    text: str
    score: int


class UserTopicsResponse(BaseModel):
    meeting_id: int
    voted: bool = False
    topics: List[UserTopic] = Field(default_factory=list)


class ScoreUpdate(BaseModel):
    score: int = Field(..., ge=0)


class MoveRequest(BaseModel):
    direction: MoveDirection
