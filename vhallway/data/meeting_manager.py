import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.cohort import Cohort, CohortGroup, CohortMember, VoteFlag
from ..models.meeting import Meeting, Topic, TopicScore, attendees_table
from ..models.participant import Participant
from ..services.errors import (
    InputError,
    MeetingNotFound,
    RankingLocked,
    UnknownTopic,
)
from .store import CohortStore

logger = logging.getLogger("vhallway.meetings")

MOVE_DIRECTIONS = {"up", "down"}


class MeetingManager(CohortStore):
    """Manages meetings, topic rankings and cohorts using SQLAlchemy."""

    def __init__(self, db: Session):
        self.db = db

    # -- participants and meetings -------------------------------------------

    def ensure_participant(self, email: str) -> Participant:
        normalized = (email or "").strip()
        if not normalized:
            raise InputError("Participant email is required.")
        participant = self.db.get(Participant, normalized)
        if participant is None:
            participant = Participant(email=normalized)
            self.db.add(participant)
            self.db.flush()
        return participant

    def create_meeting(self, name: str) -> Meeting:
        normalized = (name or "").strip()
        if not normalized:
            raise InputError("Meeting name is required.")
        meeting = Meeting(name=normalized)
        self.db.add(meeting)
        self.db.commit()
        self.db.refresh(meeting)
        logger.info("Created meeting %s (%s).", meeting.meeting_id, meeting.name)
        return meeting

    def get_meeting(self, meeting_id: int) -> Optional[Meeting]:
        return self.db.get(Meeting, meeting_id)

    def _require_meeting(self, meeting_id: int) -> Meeting:
        meeting = self.get_meeting(meeting_id)
        if meeting is None:
            raise MeetingNotFound(f"Meeting {meeting_id} not found.")
        return meeting

    def list_meetings(self, participant: str) -> List[Tuple[Meeting, bool]]:
        attending = {
            meeting_id
            for (meeting_id,) in self.db.query(attendees_table.c.meeting_id)
            .filter(attendees_table.c.participant_email == participant)
            .all()
        }
        meetings = self.db.query(Meeting).order_by(Meeting.meeting_id).all()
        return [(meeting, meeting.meeting_id in attending) for meeting in meetings]

    def _is_attending(self, meeting_id: int, participant: str) -> bool:
        count = (
            self.db.query(func.count())
            .select_from(attendees_table)
            .filter(
                attendees_table.c.meeting_id == meeting_id,
                attendees_table.c.participant_email == participant,
            )
            .scalar()
        )
        return bool(count)

    def attend_meeting(self, meeting_id: int, email: str, attend: bool = True) -> bool:
        """Join or leave a meeting; joining seeds scores for every topic."""
        meeting = self._require_meeting(meeting_id)
        participant = self.ensure_participant(email)
        attending = self._is_attending(meeting_id, participant.email)
        if attend and not attending:
            meeting.attendees.append(participant)
            self.db.flush()
            self._seed_scores(meeting, participant.email)
        elif not attend and attending:
            meeting.attendees.remove(participant)
        self.db.commit()
        return attend

    def _max_score(self, meeting_id: int, participant: str) -> Optional[int]:
        return (
            self.db.query(func.max(TopicScore.score))
            .filter(
                TopicScore.meeting_id == meeting_id,
                TopicScore.participant_email == participant,
            )
            .scalar()
        )

    def _seed_scores(self, meeting: Meeting, participant: str) -> None:
        scored = {
            topic_id
            for (topic_id,) in self.db.query(TopicScore.topic_id)
            .filter(
                TopicScore.meeting_id == meeting.meeting_id,
                TopicScore.participant_email == participant,
            )
            .all()
        }
        current = self._max_score(meeting.meeting_id, participant)
        next_score = 0 if current is None else current + 1
        for topic in meeting.topics:
            if topic.topic_id in scored:
                continue
            self.db.add(
                TopicScore(
                    meeting_id=meeting.meeting_id,
                    topic_id=topic.topic_id,
                    participant_email=participant,
                    score=next_score,
                )
            )
            next_score += 1
        self.db.flush()

    # -- topics and personal rankings ----------------------------------------

    def _ensure_topics_open(self, meeting_id: int) -> None:
        claimed = (
            self.db.query(CohortGroup.group_id)
            .filter(CohortGroup.meeting_id == meeting_id)
            .first()
        )
        if claimed is not None:
            raise RankingLocked(f"Cohorts for meeting {meeting_id} are already formed.")
        voted = (
            self.db.query(VoteFlag.id)
            .filter(VoteFlag.meeting_id == meeting_id, VoteFlag.voted.is_(True))
            .first()
        )
        if voted is not None:
            raise RankingLocked(f"Voting for meeting {meeting_id} has already begun.")

    def add_topic(self, meeting_id: int, text: str) -> Topic:
        meeting = self._require_meeting(meeting_id)
        normalized = (text or "").strip()
        if not normalized:
            raise InputError("Topic text is required.")
        self._ensure_topics_open(meeting_id)
        topic = Topic(meeting_id=meeting.meeting_id, text=normalized)
        self.db.add(topic)
        self.db.flush()
        # New topics land at the top of every attendee's list.
        for attendee in meeting.attendees:
            current = self._max_score(meeting.meeting_id, attendee.email)
            self.db.add(
                TopicScore(
                    meeting_id=meeting.meeting_id,
                    topic_id=topic.topic_id,
                    participant_email=attendee.email,
                    score=0 if current is None else current + 1,
                )
            )
            self.db.flush()
        self.db.commit()
        self.db.refresh(topic)
        return topic

    def get_user_topics(self, meeting_id: int, participant: str) -> List[Tuple[Topic, int]]:
        """Return the participant's topics, most preferred first."""
        self._require_meeting(meeting_id)
        rows = (
            self.db.query(Topic, TopicScore.score)
            .join(TopicScore, TopicScore.topic_id == Topic.topic_id)
            .filter(
                TopicScore.meeting_id == meeting_id,
                TopicScore.participant_email == participant,
            )
            .all()
        )
        return sorted(
            ((topic, int(score)) for topic, score in rows),
            key=lambda row: (-row[1], row[0].topic_id),
        )

    def _has_voted(self, meeting_id: int, participant: str) -> bool:
        return self.get_vote_flags(meeting_id, [participant]).get(participant, False)

    def _ensure_unlocked(self, meeting_id: int, participant: str) -> None:
        if self._has_voted(meeting_id, participant):
            raise RankingLocked(
                f"{participant} already finalized their ranking for meeting {meeting_id}."
            )

    def _score_rows(self, meeting_id: int, participant: str) -> List[TopicScore]:
        return (
            self.db.query(TopicScore)
            .filter(
                TopicScore.meeting_id == meeting_id,
                TopicScore.participant_email == participant,
            )
            .order_by(TopicScore.score, TopicScore.topic_id)
            .all()
        )

    def set_topic_score(
        self, meeting_id: int, participant: str, topic_id: int, score: int
    ) -> None:
        self._require_meeting(meeting_id)
        self._ensure_unlocked(meeting_id, participant)
        if int(score) < 0:
            raise InputError("Scores must be non-negative.")
        row = next(
            (
                entry
                for entry in self._score_rows(meeting_id, participant)
                if entry.topic_id == topic_id
            ),
            None,
        )
        if row is None:
            raise UnknownTopic(f"Topic {topic_id} is not ranked by {participant}.")
        row.score = int(score)
        self.db.commit()

    def move_topic(
        self, meeting_id: int, participant: str, topic_id: int, direction: str
    ) -> bool:
        """Swap a topic with its neighbour in the participant's ordering.

        Returns ``False`` when the topic is already at that end of the list.
        """
        self._require_meeting(meeting_id)
        direction = (direction or "").strip().lower()
        if direction not in MOVE_DIRECTIONS:
            raise InputError("Direction must be 'up' or 'down'.")
        self._ensure_unlocked(meeting_id, participant)

        rows = self._score_rows(meeting_id, participant)
        position = next(
            (index for index, row in enumerate(rows) if row.topic_id == topic_id), None
        )
        if position is None:
            raise UnknownTopic(f"Topic {topic_id} is not ranked by {participant}.")
        neighbour = position + 1 if direction == "up" else position - 1
        if neighbour < 0 or neighbour >= len(rows):
            return False

        # Renumber first so tied scores still produce a visible move.
        for index, row in enumerate(rows):
            row.score = index
        rows[position].score, rows[neighbour].score = neighbour, position
        self.db.commit()
        return True

    def finalize_vote(self, meeting_id: int, participant: str) -> None:
        self._require_meeting(meeting_id)
        if not self._is_attending(meeting_id, participant):
            raise InputError(f"{participant} is not attending meeting {meeting_id}.")
        flag = (
            self.db.query(VoteFlag)
            .filter(
                VoteFlag.meeting_id == meeting_id,
                VoteFlag.participant_email == participant,
            )
            .first()
        )
        if flag is None:
            self.db.add(
                VoteFlag(meeting_id=meeting_id, participant_email=participant, voted=True)
            )
        else:
            flag.voted = True
        self.db.commit()

    # -- CohortStore ---------------------------------------------------------

    def try_create_cohort_group(self, meeting_id: int) -> Tuple[int, bool]:
        try:
            with self.db.begin_nested():
                group = CohortGroup(meeting_id=meeting_id)
                self.db.add(group)
            return group.group_id, True
        except IntegrityError:
            existing = (
                self.db.query(CohortGroup)
                .filter(CohortGroup.meeting_id == meeting_id)
                .one()
            )
            logger.debug(
                "Cohort group for meeting %s already claimed (%s).",
                meeting_id,
                existing.group_id,
            )
            return existing.group_id, False

    def commit_cohort_group(self, group_id: int) -> None:
        self.db.commit()

    def abandon_cohort_group(self, group_id: int) -> None:
        self.db.rollback()
        logger.warning("Rolled back unfinished cohort group %s.", group_id)

    def list_attendees(self, meeting_id: int) -> Set[str]:
        return {
            email
            for (email,) in self.db.query(attendees_table.c.participant_email)
            .filter(attendees_table.c.meeting_id == meeting_id)
            .all()
        }

    def persist_cohort_membership(
        self, group_id: int, cohort_index: int, participant: str
    ) -> None:
        cohort = (
            self.db.query(Cohort)
            .filter(Cohort.group_id == group_id, Cohort.cohort_index == cohort_index)
            .first()
        )
        if cohort is None:
            cohort = Cohort(group_id=group_id, cohort_index=cohort_index)
            self.db.add(cohort)
            self.db.flush()
        self.db.add(CohortMember(cohort_id=cohort.cohort_id, participant_email=participant))
        self.db.flush()

    def _cohort_ids_for(self, meeting_id: int, participant: str):
        return (
            select(CohortMember.cohort_id)
            .join(Cohort, Cohort.cohort_id == CohortMember.cohort_id)
            .join(CohortGroup, CohortGroup.group_id == Cohort.group_id)
            .where(
                CohortGroup.meeting_id == meeting_id,
                CohortMember.participant_email == participant,
            )
        )

    def count_cohort_peers(self, meeting_id: int, participant: str) -> int:
        value = (
            self.db.query(func.count(CohortMember.id))
            .filter(CohortMember.cohort_id.in_(self._cohort_ids_for(meeting_id, participant)))
            .scalar()
        )
        return int(value or 0)

    def get_cohort_peers(self, meeting_id: int, participant: str) -> Set[str]:
        return {
            email
            for (email,) in self.db.query(CohortMember.participant_email)
            .filter(CohortMember.cohort_id.in_(self._cohort_ids_for(meeting_id, participant)))
            .all()
        }

    def get_vote_flags(self, meeting_id: int, members: Iterable[str]) -> Dict[str, bool]:
        members = list(members)
        flags = {member: False for member in members}
        if not members:
            return flags
        rows = (
            self.db.query(VoteFlag.participant_email, VoteFlag.voted)
            .filter(
                VoteFlag.meeting_id == meeting_id,
                VoteFlag.participant_email.in_(members),
            )
            .all()
        )
        for email, voted in rows:
            flags[email] = bool(voted)
        return flags

    def get_topic_rankings(
        self, meeting_id: int, members: Iterable[str]
    ) -> Dict[str, List[Tuple[int, int]]]:
        attending = self.list_attendees(meeting_id)
        rankings: Dict[str, List[Tuple[int, int]]] = {
            member: [] for member in members if member in attending
        }
        if not rankings:
            return rankings
        rows = (
            self.db.query(TopicScore.participant_email, TopicScore.topic_id, TopicScore.score)
            .filter(
                TopicScore.meeting_id == meeting_id,
                TopicScore.participant_email.in_(list(rankings)),
            )
            .order_by(TopicScore.participant_email, TopicScore.topic_id)
            .all()
        )
        for email, topic_id, score in rows:
            rankings[email].append((int(topic_id), int(score)))
        return rankings

    def get_meeting_name(self, meeting_id: int) -> str:
        return self._require_meeting(meeting_id).name

    def get_topic_texts(self, meeting_id: int) -> Dict[int, str]:
        return {
            topic_id: text
            for topic_id, text in self.db.query(Topic.topic_id, Topic.text)
            .filter(Topic.meeting_id == meeting_id)
            .all()
        }


def get_meeting_manager(db: Session = Depends(get_db)) -> MeetingManager:
    """Dependency provider for MeetingManager."""
    return MeetingManager(db=db)
