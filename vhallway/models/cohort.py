from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class CohortGroup(Base):
    __tablename__ = "cohort_groups"
    __table_args__ = (
        # At most one partition per meeting; concurrent starters race on this.
        UniqueConstraint("meeting_id", name="uq_cohort_groups_meeting"),
    )

    group_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    meeting_id = Column(
        Integer,
        ForeignKey("meetings.meeting_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    cohorts = relationship(
        "Cohort",
        order_by="Cohort.cohort_index",
        cascade="all, delete-orphan",
        back_populates="group",
    )


class Cohort(Base):
    __tablename__ = "cohorts"
    __table_args__ = (
        UniqueConstraint("group_id", "cohort_index", name="uq_cohorts_group_index"),
    )

    cohort_id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    group_id = Column(
        Integer,
        ForeignKey("cohort_groups.group_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    cohort_index = Column(Integer, nullable=False)

    group = relationship("CohortGroup", back_populates="cohorts")
    members = relationship(
        "CohortMember",
        cascade="all, delete-orphan",
        back_populates="cohort",
    )


class CohortMember(Base):
    __tablename__ = "cohort_members"
    __table_args__ = (
        UniqueConstraint(
            "cohort_id", "participant_email", name="uq_cohort_members_participant"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    cohort_id = Column(
        Integer,
        ForeignKey("cohorts.cohort_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    participant_email = Column(
        String(255),
        ForeignKey("participants.email", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    cohort = relationship("Cohort", back_populates="members")


class VoteFlag(Base):
    __tablename__ = "vote_flags"
    __table_args__ = (
        UniqueConstraint(
            "meeting_id", "participant_email", name="uq_vote_flags_participant"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    meeting_id = Column(
        Integer,
        ForeignKey("meetings.meeting_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    participant_email = Column(
        String(255),
        ForeignKey("participants.email", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    voted = Column(Boolean, nullable=False, default=False)
    voted_at = Column(DateTime(timezone=True), server_default=func.now())
