from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Protocol, Sequence

from services import activity_types
from services.activity_types import ActivityCategory, TaskIdentifier
from services.completion_tracker import CompletionTracker
from services.flag_store import FlagStore
from services.result_validator import AnswerResult, TaskResult, ValidationResult, validate
from services.study_calendar import Clock, ScheduledActivity, day_of_study, resolve_study_start_date


logger = logging.getLogger(__name__)

CADENCE_DAILY = "daily"
CADENCE_WEEKLY = "weekly"
DAY_OF_STUDY_RESULT_IDENTIFIER = "dayOfStudy"

END_OF_STUDY_SORT_ORDER: tuple[str, ...] = (
    TaskIdentifier.TAPPING,
    TaskIdentifier.RESTING_KINETIC_TREMOR,
    TaskIdentifier.ATTENTIONAL_BLINK,
    TaskIdentifier.SYMBOL_SUBSTITUTION,
    TaskIdentifier.GO_NO_GO,
    TaskIdentifier.N_BACK,
    TaskIdentifier.SPATIAL_MEMORY,
    TaskIdentifier.TASK_SWITCH,
    TaskIdentifier.DAILY_CHECK_IN,
    TaskIdentifier.SLEEP_CHECK_IN,
)


class ResultUploader(Protocol):
    def upload(self, task_result: TaskResult) -> None: ...


@dataclass(frozen=True)
class ResolvedActivity:
    category: ActivityCategory
    cadence: str  # daily | weekly
    task_identifier: str
    scheduled_activity: ScheduledActivity | None
    is_complete: bool
    title_key: str
    detail_key: str
    reminder: str

    @property
    def is_available(self) -> bool:
        return self.scheduled_activity is not None


@dataclass(frozen=True)
class ResolvedSchedule:
    day_of_study: int
    week_of_study: int
    daily: list[ResolvedActivity] = field(default_factory=list)
    weekly: list[ResolvedActivity] = field(default_factory=list)

    @property
    def unresolved(self) -> list[ActivityCategory]:
        return [item.category for item in [*self.daily, *self.weekly] if not item.is_available]


def scheduled_activity_for(
    category: ActivityCategory,
    day: int,
    activities: Iterable[ScheduledActivity],
) -> ScheduledActivity | None:
    task_id = activity_types.task_identifier(category, day)
    for activity in activities:
        if activity.activity_identifier == task_id:
            return activity
    return None


def end_of_study_ordered_schedules(activities: Sequence[ScheduledActivity]) -> list[ScheduledActivity] | None:
    """
    Schedules to show at the end of the study, in the fixed presentation order.

    Returns None when there are no schedules at all. Identifiers outside the
    order are dropped.
    """
    if not activities:
        return None
    rank = {task_id: idx for idx, task_id in enumerate(END_OF_STUDY_SORT_ORDER)}
    matching = [activity for activity in activities if activity.activity_identifier in rank]
    return sorted(matching, key=lambda activity: rank[activity.activity_identifier])


class ActivityScheduleManager:
    """
    Per-participant entry point for the study schedule.

    Holds the schedules synced from the study backend, a completion flag
    store and a clock. Everything derived from "today" reads the injected
    clock.
    """

    def __init__(
        self,
        activities: Iterable[ScheduledActivity],
        store: FlagStore,
        clock: Clock,
        tz_name: str | None = None,
        uploader: ResultUploader | None = None,
        study_start: datetime | None = None,
    ) -> None:
        self.scheduled_activities: list[ScheduledActivity] = list(activities)
        self.tracker = CompletionTracker(store)
        self.clock = clock
        self.tz_name = tz_name
        self.uploader = uploader
        # Start date recorded earlier for this participant, if any.
        self.fixed_study_start = study_start
        # Activity the participant is currently doing, and the study day it was started on.
        self.current_activity: ActivityCategory | None = None
        self.day_of_current_activity = 0

    def study_start_date(self) -> datetime:
        return resolve_study_start_date(
            self.scheduled_activities,
            self.clock,
            self.tz_name,
            fixed_start=self.fixed_study_start,
        )

    def day_of_study(self, at: datetime | date | None = None) -> int:
        target = at if at is not None else self.clock.now()
        return day_of_study(self.study_start_date(), target, self.tz_name)

    def week_of_study(self, day: int) -> int:
        return activity_types.week_of_study(day)

    def task_identifier(self, category: ActivityCategory, day: int) -> str:
        return activity_types.task_identifier(category, day)

    def daily_categories(self, day: int) -> list[ActivityCategory]:
        return activity_types.daily_categories(day)

    def weekly_categories(self, day: int) -> list[ActivityCategory]:
        return activity_types.weekly_categories(day)

    def required_categories(self, day: int) -> set[ActivityCategory]:
        return activity_types.required_categories(day)

    def scheduled_activity(self, category: ActivityCategory, day: int) -> ScheduledActivity | None:
        return scheduled_activity_for(category, day, self.scheduled_activities)

    def is_complete(self, category: ActivityCategory, day: int) -> bool:
        return self.tracker.is_complete(category, day)

    def mark_complete(self, category: ActivityCategory, day: int) -> None:
        self.tracker.mark_complete(category, day)

    def complete_end_of_study(self, task_identifier: str) -> None:
        self.tracker.complete_end_of_study(task_identifier)

    def is_end_of_study_complete(self, task_identifier: str) -> bool:
        return self.tracker.is_end_of_study_complete(task_identifier)

    def end_of_study_ordered_schedules(
        self,
        activities: Sequence[ScheduledActivity] | None = None,
    ) -> list[ScheduledActivity] | None:
        source = self.scheduled_activities if activities is None else activities
        return end_of_study_ordered_schedules(source)

    def _resolve(self, category: ActivityCategory, cadence: str, day: int) -> ResolvedActivity:
        complete = self.is_complete(category, day)
        return ResolvedActivity(
            category=category,
            cadence=cadence,
            task_identifier=self.task_identifier(category, day),
            scheduled_activity=self.scheduled_activity(category, day),
            is_complete=complete,
            title_key=activity_types.title_key(category),
            detail_key=activity_types.detail_key(category, day, complete),
            reminder=activity_types.reminder_type(category).value,
        )

    def resolve_schedule(self, day: int | None = None) -> ResolvedSchedule:
        target_day = self.day_of_study() if day is None else int(day)
        schedule = ResolvedSchedule(
            day_of_study=target_day,
            week_of_study=self.week_of_study(target_day),
            daily=[self._resolve(c, CADENCE_DAILY, target_day) for c in self.daily_categories(target_day)],
            weekly=[self._resolve(c, CADENCE_WEEKLY, target_day) for c in self.weekly_categories(target_day)],
        )
        for category in schedule.unresolved:
            logger.warning(
                "No scheduled activity for %s on day %s (%s); not yet available",
                category.value,
                target_day,
                self.task_identifier(category, target_day),
            )
        return schedule

    def validate(self, task_result: TaskResult, identifier: str | None = None) -> ValidationResult:
        return validate(task_result, identifier)

    def start_activity(self, category: ActivityCategory) -> None:
        self.current_activity = category
        self.day_of_current_activity = self.day_of_study()

    def ready_to_save(self, task_result: TaskResult) -> ValidationResult:
        """
        Gate a finished task before upload.

        Invalid results are dropped without recording completion. Valid ones
        are stamped with the study day the activity was started on, credited
        to the current activity and handed to the uploader.
        """
        validity = self.validate(task_result)
        if not validity.is_valid:
            logger.info("Data is not valid, skipping upload. Reason: %s", validity.error_message)
            return validity

        task_result.step_history.append(
            AnswerResult(
                identifier=DAY_OF_STUDY_RESULT_IDENTIFIER,
                value=self.day_of_current_activity,
                answer_type="integer",
            )
        )
        if self.current_activity is not None and self.day_of_current_activity >= 1:
            self.mark_complete(self.current_activity, self.day_of_current_activity)
        if self.uploader is not None:
            self.uploader.upload(task_result)
        return validity
