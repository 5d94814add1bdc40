from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Set, Tuple

from vhallway.config.loader import get_cohort_settings, get_election_settings
from vhallway.data.store import CohortStore
from vhallway.services.borda import borda_count, select_winners
from vhallway.services.cohorts import partition
from vhallway.services.errors import TopicSetMismatch
from vhallway.services.peers import resolve_peers

logger = logging.getLogger("vhallway.election")


class ElectionStatus(str, Enum):
    NO_COHORT = "Empty cohort for user"
    VOTING_OPEN = "Cohort voting not finished"
    MEMBERSHIP_MISMATCH = "Unexpected cohort email mismatch"
    FINISHED = "Vote finished"


@dataclass(frozen=True)
class WinningTopic:
    topic_id: int
    text: str
    borda_score: int


@dataclass(frozen=True)
class CohortAssignment:
    peers: Optional[Set[str]] = None


@dataclass(frozen=True)
class ElectionResult:
    status: ElectionStatus
    winning_topics: Optional[List[WinningTopic]] = None
    cohort_members: Optional[List[str]] = None
    meeting_link: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.status is ElectionStatus.FINISHED


def build_meeting_link(
    meeting_id: int,
    meeting_name: str,
    winning_topics: Sequence[WinningTopic],
    cohort_members: Sequence[str],
    link_base: str,
) -> str:
    """Derive the cohort's shared destination from already agreed data.

    Every member computes this independently; canonical JSON keeps the
    digest byte-identical across callers.
    """
    payload = [
        int(meeting_id),
        meeting_name,
        [[topic.topic_id, topic.text] for topic in winning_topics],
        sorted(cohort_members),
    ]
    raw = json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    return f"{link_base}{hashlib.sha256(raw).hexdigest()}"


class ElectionManager:
    """Forms a meeting's cohorts once and reports each cohort's topic election."""

    def __init__(
        self,
        store: CohortStore,
        *,
        cohort_size: Optional[int] = None,
        winner_count: Optional[int] = None,
        meeting_link_base: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        cohort_settings = get_cohort_settings()
        election_settings = get_election_settings()
        self.store = store
        self.cohort_size = cohort_size or cohort_settings["cohort_size"]
        self.winner_count = winner_count or cohort_settings["winner_count"]
        self.meeting_link_base = (
            meeting_link_base
            if meeting_link_base is not None
            else election_settings["meeting_link_base"]
        )
        self._sleep = sleep
        self._rng = rng

    async def _resolve(self, meeting_id: int, participant: str) -> Optional[Set[str]]:
        return await resolve_peers(self.store, meeting_id, participant, sleep=self._sleep)

    def _form_cohorts(self, meeting_id: int, group_id: int) -> None:
        attendees = sorted(self.store.list_attendees(meeting_id))
        if not attendees:
            logger.info("Meeting %s started with no attendees; no cohorts formed.", meeting_id)
            self.store.commit_cohort_group(group_id)
            return
        size = min(self.cohort_size, len(attendees))
        cohorts = partition(len(attendees), size, rng=self._rng)
        for cohort_index, cohort in enumerate(cohorts):
            for position in cohort:
                self.store.persist_cohort_membership(
                    group_id, cohort_index, attendees[position]
                )
        self.store.commit_cohort_group(group_id)
        logger.info(
            "Formed %s cohort(s) of up to %s for %s attendee(s) in meeting %s.",
            len(cohorts),
            size,
            len(attendees),
            meeting_id,
        )

    async def start_meeting(self, meeting_id: int, participant: str) -> CohortAssignment:
        group_id, created = self.store.try_create_cohort_group(meeting_id)
        if created:
            try:
                self._form_cohorts(meeting_id, group_id)
            except Exception:
                # The claim must not outlive a partial formation.
                self.store.abandon_cohort_group(group_id)
                raise
        peers = await self._resolve(meeting_id, participant)
        return CohortAssignment(peers=peers)

    def _shared_topic_order(
        self,
        meeting_id: int,
        members: Sequence[str],
        rankings: Dict[str, List[Tuple[int, int]]],
    ) -> List[int]:
        topic_ids = [topic_id for topic_id, _ in rankings[members[0]]]
        for member in members[1:]:
            if [topic_id for topic_id, _ in rankings[member]] != topic_ids:
                raise TopicSetMismatch(meeting_id, member)
        return topic_ids

    async def get_election_result(self, meeting_id: int, participant: str) -> ElectionResult:
        peers = await self._resolve(meeting_id, participant)
        if not peers:
            return ElectionResult(status=ElectionStatus.NO_COHORT)

        members = sorted(peers)
        flags = self.store.get_vote_flags(meeting_id, members)
        if not all(flags.get(member, False) for member in members):
            return ElectionResult(status=ElectionStatus.VOTING_OPEN)

        rankings = self.store.get_topic_rankings(meeting_id, members)
        if set(rankings) != set(members):
            logger.warning(
                "Cohort of %s in meeting %s does not match its attendees: cohort=%s attendees=%s",
                participant,
                meeting_id,
                members,
                sorted(rankings),
            )
            return ElectionResult(status=ElectionStatus.MEMBERSHIP_MISMATCH)

        topic_ids = self._shared_topic_order(meeting_id, members, rankings)
        totals = borda_count([[score for _, score in rankings[member]] for member in members])
        texts = self.store.get_topic_texts(meeting_id)
        winning_topics = [
            WinningTopic(topic_id=topic_id, text=texts.get(topic_id, ""), borda_score=total)
            for topic_id, total in select_winners(topic_ids, totals, self.winner_count)
        ]
        meeting_link = build_meeting_link(
            meeting_id,
            self.store.get_meeting_name(meeting_id),
            winning_topics,
            members,
            self.meeting_link_base,
        )
        return ElectionResult(
            status=ElectionStatus.FINISHED,
            winning_topics=winning_topics,
            cohort_members=members,
            meeting_link=meeting_link,
        )
