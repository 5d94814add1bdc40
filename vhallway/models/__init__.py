# Import models to make them accessible via vhallway.models
# and ensure they are registered with SQLAlchemy's Base metadata
from .participant import Participant
from .meeting import Meeting, Topic, TopicScore, attendees_table
from .cohort import Cohort, CohortGroup, CohortMember, VoteFlag

__all__ = [
    "Participant",
    "Meeting",
    "Topic",
    "TopicScore",
    "attendees_table",
    "CohortGroup",
    "Cohort",
    "CohortMember",
    "VoteFlag",
]
