from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Set, Tuple


class CohortStore(ABC):
    """Reads and writes the election core needs from the meeting store.

    Implementations must back ``try_create_cohort_group`` with a uniqueness
    constraint on the meeting; it is the only contended write.
    """

    @abstractmethod
    def try_create_cohort_group(self, meeting_id: int) -> Tuple[int, bool]:
        """Claim the meeting's cohort group; return ``(group_id, created)``."""

    @abstractmethod
    def list_attendees(self, meeting_id: int) -> Set[str]:
        """Return the emails currently attending the meeting."""

    @abstractmethod
    def persist_cohort_membership(
        self, group_id: int, cohort_index: int, participant: str
    ) -> None:
        """Record ``participant`` as a member of cohort ``cohort_index``."""

    def commit_cohort_group(self, group_id: int) -> None:
        """Make the claimed group and its memberships durable together."""
        return None

    def abandon_cohort_group(self, group_id: int) -> None:
        """Discard a claim whose memberships could not all be written."""
        return None

    @abstractmethod
    def count_cohort_peers(self, meeting_id: int, participant: str) -> int:
        """Count members of the participant's cohort, the participant included."""

    @abstractmethod
    def get_cohort_peers(self, meeting_id: int, participant: str) -> Set[str]:
        """Return the participant's cohort; may be transiently empty."""

    @abstractmethod
    def get_vote_flags(self, meeting_id: int, members: Iterable[str]) -> Dict[str, bool]:
        """Return whether each member finalized their ranking."""

    @abstractmethod
    def get_topic_rankings(
        self, meeting_id: int, members: Iterable[str]
    ) -> Dict[str, List[Tuple[int, int]]]:
        """Return ``(topic_id, score)`` pairs ordered by topic id, per attending member."""

    @abstractmethod
    def get_meeting_name(self, meeting_id: int) -> str:
        """Return the meeting's display name."""

    @abstractmethod
    def get_topic_texts(self, meeting_id: int) -> Dict[int, str]:
        """Return the meeting's topics keyed by topic id."""
