"""
Data access layer: the store contract the election core consumes and its
SQLAlchemy implementation.
"""

from .store import CohortStore
from .meeting_manager import MeetingManager

__all__ = ["CohortStore", "MeetingManager"]
