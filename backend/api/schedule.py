from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config import settings
from db.database import get_db
from services import activity_types
from services.activity_types import ActivityCategory
from services.errors import StudyDayOutOfRangeError, UnknownCategoryError
from services.result_validator import TaskResult, result_from_dict, validate
from services.schedule_cache import manager_for_participant, replace_activities
from services.schedule_service import ActivityScheduleManager, ResolvedActivity
from services.study_calendar import Clock, ScheduledActivity, SystemClock


router = APIRouter(prefix="/participants/{participant_id}", tags=["schedule"])


class ScheduledActivityIn(BaseModel):
    activity_identifier: str
    scheduled_on: datetime
    guid: Optional[str] = None
    payload: dict[str, Any] = Field(default_factory=dict)


class ScheduleSync(BaseModel):
    activities: list[ScheduledActivityIn]


class ResultValidationRequest(BaseModel):
    identifier: Optional[str] = None
    result: dict[str, Any]


def get_clock() -> Clock:
    return SystemClock(settings.STUDY_TIMEZONE)


def _manager(participant_id: str, db: Session, clock: Clock) -> ActivityScheduleManager:
    return manager_for_participant(db, participant_id, clock=clock)


def _category(raw: str) -> ActivityCategory:
    try:
        return ActivityCategory.parse(raw)
    except UnknownCategoryError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


def _scheduled_payload(activity: ScheduledActivity | None) -> dict[str, Any] | None:
    if activity is None:
        return None
    return {
        "activity_identifier": activity.activity_identifier,
        "scheduled_on": activity.scheduled_on.isoformat(),
        "guid": activity.guid,
    }


def _activity_payload(item: ResolvedActivity) -> dict[str, Any]:
    return {
        "category": item.category.value,
        "cadence": item.cadence,
        "task_identifier": item.task_identifier,
        "available": item.is_available,
        "scheduled_activity": _scheduled_payload(item.scheduled_activity),
        "is_complete": item.is_complete,
        "title_key": item.title_key,
        "detail_key": item.detail_key,
        "reminder": item.reminder,
    }


@router.put("/schedule/activities")
def sync_activities(
    participant_id: str,
    payload: ScheduleSync,
    db: Session = Depends(get_db),
):
    count = replace_activities(
        db,
        participant_id,
        [
            ScheduledActivity(
                activity_identifier=item.activity_identifier,
                scheduled_on=item.scheduled_on,
                guid=item.guid,
                payload=item.payload,
            )
            for item in payload.activities
        ],
    )
    db.commit()
    return {"status": "ok", "count": count}


@router.get("/schedule/today")
def schedule_today(
    participant_id: str,
    day: Optional[int] = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    manager = _manager(participant_id, db, clock)
    target_day = manager.day_of_study() if day is None else day
    if target_day < 1:
        return {
            "status": "not_started",
            "day_of_study": target_day,
            "study_start_date": manager.study_start_date().date().isoformat(),
        }
    try:
        schedule = manager.resolve_schedule(target_day)
    except StudyDayOutOfRangeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {
        "status": "ok",
        "day_of_study": schedule.day_of_study,
        "week_of_study": schedule.week_of_study,
        "study_start_date": manager.study_start_date().date().isoformat(),
        "daily": [_activity_payload(item) for item in schedule.daily],
        "weekly": [_activity_payload(item) for item in schedule.weekly],
        "unresolved": [category.value for category in schedule.unresolved],
    }


@router.get("/schedule/rotation/{category}/{day}")
def rotation(
    participant_id: str,
    category: str,
    day: int,
):
    _ = participant_id
    parsed = _category(category)
    try:
        return {
            "category": parsed.value,
            "day_of_study": day,
            "week_of_study": activity_types.week_of_study(day),
            "task_identifier": activity_types.task_identifier(parsed, day),
        }
    except StudyDayOutOfRangeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/completion/{category}/{day}")
def get_completion(
    participant_id: str,
    category: str,
    day: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    parsed = _category(category)
    manager = _manager(participant_id, db, clock)
    try:
        complete = manager.is_complete(parsed, day)
    except StudyDayOutOfRangeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"category": parsed.value, "day_of_study": day, "is_complete": complete}


@router.post("/completion/{category}/{day}")
def mark_completion(
    participant_id: str,
    category: str,
    day: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    parsed = _category(category)
    manager = _manager(participant_id, db, clock)
    try:
        manager.mark_complete(parsed, day)
    except StudyDayOutOfRangeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"status": "ok", "category": parsed.value, "day_of_study": day, "is_complete": True}


@router.get("/end-of-study")
def end_of_study(
    participant_id: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    manager = _manager(participant_id, db, clock)
    ordered = manager.end_of_study_ordered_schedules()
    if ordered is None:
        return {"status": "empty", "activities": []}
    return {
        "status": "ok",
        "activities": [
            {
                **(_scheduled_payload(activity) or {}),
                "end_of_study_complete": manager.is_end_of_study_complete(activity.activity_identifier),
            }
            for activity in ordered
        ],
    }


@router.post("/end-of-study/{task_identifier}/complete")
def complete_end_of_study(
    participant_id: str,
    task_identifier: str,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    manager = _manager(participant_id, db, clock)
    manager.complete_end_of_study(task_identifier)
    return {"status": "ok", "task_identifier": task_identifier, "end_of_study_complete": True}


@router.post("/results/validate")
def validate_result(
    participant_id: str,
    payload: ResultValidationRequest,
):
    _ = participant_id
    try:
        result = result_from_dict(payload.result)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not isinstance(result, TaskResult):
        raise HTTPException(status_code=400, detail="Result root must be a task result")
    validity = validate(result, payload.identifier)
    return {"is_valid": validity.is_valid, "error_message": validity.error_message}
