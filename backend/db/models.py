from datetime import datetime
from sqlalchemy import (
    Column, Integer, Text, Boolean, Index, DateTime, UniqueConstraint,
)
from db.database import Base


class ScheduledActivityRecord(Base):
    """Local cache of the schedules issued by the study backend for a participant."""

    __tablename__ = "scheduled_activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    participant_id = Column(Text, nullable=False)
    guid = Column(Text)
    activity_identifier = Column(Text, nullable=False)
    scheduled_on = Column(DateTime, nullable=False)
    payload_json = Column(Text)  # JSON object, opaque to the scheduler
    synced_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_scheduled_activities_participant", "participant_id", "scheduled_on"),
    )


class CompletionFlag(Base):
    __tablename__ = "completion_flags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    participant_id = Column(Text, nullable=False)
    flag_key = Column(Text, nullable=False)  # e.g. physicalDay3, cognitionWeek2, endOfStudyCompleteTapping
    value = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("participant_id", "flag_key", name="uniq_completion_flag"),
    )


class StudyStart(Base):
    """Study day zero per participant; only ever moved earlier once recorded."""

    __tablename__ = "study_starts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    participant_id = Column(Text, nullable=False, unique=True)
    start_date = Column(DateTime, nullable=False)  # local midnight in the study timezone
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
