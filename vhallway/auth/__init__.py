from .auth import PARTICIPANT_HEADER, get_current_participant

__all__ = [
    "PARTICIPANT_HEADER",
    "get_current_participant",
]
