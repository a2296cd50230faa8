from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Iterable
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from config import settings
from db.models import ScheduledActivityRecord, StudyStart
from services.flag_store import SqlFlagStore
from services.schedule_service import ActivityScheduleManager
from services.study_calendar import Clock, ScheduledActivity, SystemClock, earliest_scheduled_day


logger = logging.getLogger(__name__)


def _safe_json_loads(raw: str | None, fallback: Any) -> Any:
    if not raw:
        return fallback
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return fallback


def _json_dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=True)


def _naive(value: datetime) -> datetime:
    # SQLite drops tzinfo; store local wall time in the study timezone.
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(settings.STUDY_TIMEZONE)).replace(tzinfo=None)


def load_activities(db: Session, participant_id: str) -> list[ScheduledActivity]:
    rows = (
        db.query(ScheduledActivityRecord)
        .filter(ScheduledActivityRecord.participant_id == participant_id)
        .order_by(ScheduledActivityRecord.id.asc())
        .all()
    )
    return [
        ScheduledActivity(
            activity_identifier=row.activity_identifier,
            scheduled_on=row.scheduled_on,
            guid=row.guid,
            payload=_safe_json_loads(row.payload_json, {}),
        )
        for row in rows
    ]


def load_study_start(db: Session, participant_id: str) -> datetime | None:
    row = db.query(StudyStart).filter(StudyStart.participant_id == participant_id).first()
    return row.start_date if row is not None else None


def record_study_start(db: Session, participant_id: str, activities: Iterable[ScheduledActivity]) -> datetime | None:
    """Record day zero from a sync, moving an existing start earlier but never later. Caller commits."""
    earliest = earliest_scheduled_day(activities, settings.STUDY_TIMEZONE)
    row = db.query(StudyStart).filter(StudyStart.participant_id == participant_id).first()
    if earliest is None:
        return row.start_date if row is not None else None
    if row is None:
        db.add(StudyStart(participant_id=participant_id, start_date=earliest))
        logger.info("Study start for participant %s set to %s", participant_id, earliest.date().isoformat())
        return earliest
    if earliest < row.start_date:
        logger.warning(
            "Study start for participant %s moved earlier from %s to %s",
            participant_id,
            row.start_date.date().isoformat(),
            earliest.date().isoformat(),
        )
        row.start_date = earliest
    return row.start_date


def replace_activities(db: Session, participant_id: str, activities: Iterable[ScheduledActivity]) -> int:
    """Replace the cached schedules with a fresh sync. Caller commits."""
    activities = list(activities)
    record_study_start(db, participant_id, activities)
    db.query(ScheduledActivityRecord).filter(ScheduledActivityRecord.participant_id == participant_id).delete()
    count = 0
    for activity in activities:
        db.add(
            ScheduledActivityRecord(
                participant_id=participant_id,
                guid=activity.guid,
                activity_identifier=activity.activity_identifier,
                scheduled_on=_naive(activity.scheduled_on),
                payload_json=_json_dump(activity.payload or {}),
            )
        )
        count += 1
    logger.info("Synced %s scheduled activities for participant %s", count, participant_id)
    return count


def manager_for_participant(db: Session, participant_id: str, clock: Clock | None = None) -> ActivityScheduleManager:
    return ActivityScheduleManager(
        load_activities(db, participant_id),
        store=SqlFlagStore(db, participant_id),
        clock=clock or SystemClock(settings.STUDY_TIMEZONE),
        tz_name=settings.STUDY_TIMEZONE,
        study_start=load_study_start(db, participant_id),
    )
