from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, status

from vhallway.auth.auth import get_current_participant
from vhallway.config.loader import get_election_settings
from vhallway.data.meeting_manager import MeetingManager, get_meeting_manager
from vhallway.schemas.election import (
    CohortAssignmentResponse,
    ElectionResultResponse,
    WinningTopicSummary,
)
from vhallway.schemas.meeting import (
    AttendRequest,
    MeetingCreate,
    MeetingResponse,
    MeetingsResponse,
    MoveRequest,
    ScoreUpdate,
    TopicCreate,
    UserTopic,
    UserTopicsResponse,
)
from vhallway.services.election import ElectionManager
from vhallway.services.errors import (
    ConsistencyViolation,
    ElectionError,
    MeetingNotFound,
    RankingLocked,
)

router = APIRouter(prefix="/api/meetings", tags=["meetings"])
logger = logging.getLogger("vhallway")


def _raise_http(exc: ElectionError) -> NoReturn:
    if isinstance(exc, MeetingNotFound):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, RankingLocked):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, ConsistencyViolation):
        logger.error("Election consistency violation: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def _require_meeting(meeting_manager: MeetingManager, meeting_id: int):
    meeting = meeting_manager.get_meeting(meeting_id)
    if not meeting:
        raise HTTPException(status_code=404, detail="Meeting not found")
    return meeting


def _user_topics_payload(
    meeting_manager: MeetingManager, meeting_id: int, participant: str
) -> UserTopicsResponse:
    rows = meeting_manager.get_user_topics(meeting_id, participant)
    voted = meeting_manager.get_vote_flags(meeting_id, [participant])[participant]
    return UserTopicsResponse(
        meeting_id=meeting_id,
        voted=voted,
        topics=[
            UserTopic(topic_id=topic.topic_id, text=topic.text, score=score)
            for topic, score in rows
        ],
    )


@router.post("", response_model=MeetingResponse, status_code=status.HTTP_201_CREATED)
async def create_meeting(
    payload: MeetingCreate,
    participant: str = Depends(get_current_participant),
    meeting_manager: MeetingManager = Depends(get_meeting_manager),
):
    try:
        meeting = meeting_manager.create_meeting(payload.name)
    except ElectionError as exc:
        _raise_http(exc)
    logger.info("Meeting %s created by %s.", meeting.meeting_id, participant)
    return MeetingResponse(meeting_id=meeting.meeting_id, name=meeting.name)


@router.get("", response_model=MeetingsResponse)
async def list_meetings(
    participant: str = Depends(get_current_participant),
    meeting_manager: MeetingManager = Depends(get_meeting_manager),
):
    return MeetingsResponse(
        meetings=[
            MeetingResponse(meeting_id=meeting.meeting_id, name=meeting.name, attending=attending)
            for meeting, attending in meeting_manager.list_meetings(participant)
        ]
    )


@router.post("/{meeting_id}/attend", response_model=MeetingResponse)
async def attend_meeting(
    meeting_id: int,
    payload: AttendRequest,
    participant: str = Depends(get_current_participant),
    meeting_manager: MeetingManager = Depends(get_meeting_manager),
):
    meeting = _require_meeting(meeting_manager, meeting_id)
    try:
        attending = meeting_manager.attend_meeting(meeting_id, participant, payload.attend)
    except ElectionError as exc:
        _raise_http(exc)
    return MeetingResponse(meeting_id=meeting.meeting_id, name=meeting.name, attending=attending)


@router.post(
    "/{meeting_id}/topics",
    response_model=UserTopicsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_topic(
    meeting_id: int,
    payload: TopicCreate,
    participant: str = Depends(get_current_participant),
    meeting_manager: MeetingManager = Depends(get_meeting_manager),
):
    _require_meeting(meeting_manager, meeting_id)
    try:
        meeting_manager.add_topic(meeting_id, payload.text)
    except ElectionError as exc:
        _raise_http(exc)
    return _user_topics_payload(meeting_manager, meeting_id, participant)


@router.get("/{meeting_id}/topics", response_model=UserTopicsResponse)
async def get_topics(
    meeting_id: int,
    participant: str = Depends(get_current_participant),
    meeting_manager: MeetingManager = Depends(get_meeting_manager),
):
    _require_meeting(meeting_manager, meeting_id)
    return _user_topics_payload(meeting_manager, meeting_id, participant)


@router.put("/{meeting_id}/topics/{topic_id}/score", response_model=UserTopicsResponse)
async def set_topic_score(
    meeting_id: int,
    topic_id: int,
    payload: ScoreUpdate,
    participant: str = Depends(get_current_participant),
    meeting_manager: MeetingManager = Depends(get_meeting_manager),
):
    try:
        meeting_manager.set_topic_score(meeting_id, participant, topic_id, payload.score)
    except ElectionError as exc:
        _raise_http(exc)
    return _user_topics_payload(meeting_manager, meeting_id, participant)


@router.post("/{meeting_id}/topics/{topic_id}/move", response_model=UserTopicsResponse)
async def move_topic(
    meeting_id: int,
    topic_id: int,
    payload: MoveRequest,
    participant: str = Depends(get_current_participant),
    meeting_manager: MeetingManager = Depends(get_meeting_manager),
):
    try:
        meeting_manager.move_topic(meeting_id, participant, topic_id, payload.direction.value)
    except ElectionError as exc:
        _raise_http(exc)
    return _user_topics_payload(meeting_manager, meeting_id, participant)


@router.post("/{meeting_id}/vote", response_model=UserTopicsResponse)
async def finalize_vote(
    meeting_id: int,
    participant: str = Depends(get_current_participant),
    meeting_manager: MeetingManager = Depends(get_meeting_manager),
):
    try:
        meeting_manager.finalize_vote(meeting_id, participant)
    except ElectionError as exc:
        _raise_http(exc)
    return _user_topics_payload(meeting_manager, meeting_id, participant)


@router.post("/{meeting_id}/start", response_model=CohortAssignmentResponse)
async def start_meeting(
    meeting_id: int,
    participant: str = Depends(get_current_participant),
    meeting_manager: MeetingManager = Depends(get_meeting_manager),
):
    _require_meeting(meeting_manager, meeting_id)
    manager = ElectionManager(meeting_manager)
    try:
        assignment = await manager.start_meeting(meeting_id, participant)
    except ElectionError as exc:
        _raise_http(exc)
    peers = sorted(assignment.peers) if assignment.peers is not None else None
    return CohortAssignmentResponse(meeting_id=meeting_id, peers=peers)


@router.get("/{meeting_id}/election", response_model=ElectionResultResponse)
async def get_election_result(
    meeting_id: int,
    participant: str = Depends(get_current_participant),
    meeting_manager: MeetingManager = Depends(get_meeting_manager),
):
    _require_meeting(meeting_manager, meeting_id)
    manager = ElectionManager(meeting_manager)
    try:
        result = await manager.get_election_result(meeting_id, participant)
    except ElectionError as exc:
        _raise_http(exc)

    winning_topics = None
    if result.winning_topics is not None:
        winning_topics = [
            WinningTopicSummary(
                topic_id=topic.topic_id, text=topic.text, borda_score=topic.borda_score
            )
            for topic in result.winning_topics
        ]
    return ElectionResultResponse(
        meeting_id=meeting_id,
        status=result.status.value,
        finished=result.finished,
        winning_topics=winning_topics,
        cohort_members=result.cohort_members,
        meeting_link=result.meeting_link,
        poll_interval_seconds=get_election_settings()["poll_interval_seconds"],
    )
