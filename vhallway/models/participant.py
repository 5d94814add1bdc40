from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Participant(Base):
    __tablename__ = "participants"

    # The email is the participant's stable identity; nothing else is interpreted.
    email = Column(String(255), primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    meetings = relationship(
        "Meeting",
        secondary="attendees",
        back_populates="attendees",
    )

    def __repr__(self) -> str:
        return f"Participant(email={self.email!r})"
