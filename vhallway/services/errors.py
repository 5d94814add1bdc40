from __future__ import annotations


class ElectionError(Exception):
    """Base error for cohort formation and topic elections."""


class InputError(ElectionError):
    """The request is invalid as given and must be corrected, not retried."""


class InsufficientParticipants(InputError):
    def __init__(self, n_participants: int, cohort_size: int) -> None:
        super().__init__(
            f"not enough participants ({n_participants}) for a cohort of {cohort_size}"
        )
        self.n_participants = n_participants
        self.cohort_size = cohort_size


class RankingLengthMismatch(InputError):
    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"lengths of rankings differ ({expected} != {actual})")
        self.expected = expected
        self.actual = actual


class RankingLocked(InputError):
    """The participant already finalized their vote for this meeting."""


class UnknownTopic(InputError):
    pass


class MeetingNotFound(InputError):
    pass


class ConsistencyViolation(ElectionError):
    """Stored data contradicts an invariant the election depends on."""


class TopicSetMismatch(ConsistencyViolation):
    def __init__(self, meeting_id: int, participant: str) -> None:
        super().__init__(
            f"topic list of {participant!r} in meeting {meeting_id} differs from its cohort"
        )
        self.meeting_id = meeting_id
        self.participant = participant
