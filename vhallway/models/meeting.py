from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base

# Association table linking participants to the meetings they attend
attendees_table = Table(
    "attendees",
    Base.metadata,
    Column(
        "participant_email",
        String(255),
        ForeignKey("participants.email", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "meeting_id",
        Integer,
        ForeignKey("meetings.meeting_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("joined_at", DateTime(timezone=True), server_default=func.now()),
)


class Meeting(Base):
    __tablename__ = "meetings"

    meeting_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    attendees = relationship(
        "Participant",
        secondary=attendees_table,
        back_populates="meetings",
    )
    topics = relationship(
        "Topic",
        order_by="Topic.topic_id",
        cascade="all, delete-orphan",
        back_populates="meeting",
    )

    def __repr__(self) -> str:
        return f"Meeting(meeting_id={self.meeting_id!r}, name={self.name!r})"


class Topic(Base):
    __tablename__ = "topics"

    topic_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    meeting_id = Column(
        Integer,
        ForeignKey("meetings.meeting_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    meeting = relationship("Meeting", back_populates="topics")


class TopicScore(Base):
    __tablename__ = "topic_scores"
    __table_args__ = (
        UniqueConstraint(
            "participant_email", "topic_id", name="uq_topic_scores_participant_topic"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    meeting_id = Column(
        Integer,
        ForeignKey("meetings.meeting_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    topic_id = Column(
        Integer,
        ForeignKey("topics.topic_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    participant_email = Column(
        String(255),
        ForeignKey("participants.email", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    score = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
