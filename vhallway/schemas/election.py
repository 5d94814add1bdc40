from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class CohortAssignmentResponse(BaseModel):
    meeting_id: int
    peers: Optional[List[str]] = None


class WinningTopicSummary(BaseModel):
    topic_id: int
    text: str
    borda_score: int


class ElectionResultResponse(BaseModel):
    meeting_id: int
    status: str
    finished: bool = False
    winning_topics: Optional[List[WinningTopicSummary]] = None
    cohort_members: Optional[List[str]] = None
    meeting_link: Optional[str] = None
    poll_interval_seconds: int = Field(5, gt=0)
