"""Cohort formation and ranked topic election for vhallway."""

from .borda import borda_count, select_winners
from .cohorts import partition
from .election import (
    CohortAssignment,
    ElectionManager,
    ElectionResult,
    ElectionStatus,
    WinningTopic,
    build_meeting_link,
)
from .peers import resolve_peers

__all__ = [
    "borda_count",
    "select_winners",
    "partition",
    "resolve_peers",
    "CohortAssignment",
    "ElectionManager",
    "ElectionResult",
    "ElectionStatus",
    "WinningTopic",
    "build_meeting_link",
]
