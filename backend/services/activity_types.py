from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from services.errors import StudyDayOutOfRangeError, UnknownCategoryError


DAYS_PER_WEEK = 7
# Physical and cognition move from a daily to a weekly cadence after this day.
DAILY_CADENCE_LAST_DAY = 7


class TaskIdentifier:
    TAPPING = "Tapping"
    RESTING_KINETIC_TREMOR = "RestingKineticTremor"
    GO_NO_GO = "GoNoGo"
    SYMBOL_SUBSTITUTION = "SymbolSubstitution"
    SPATIAL_MEMORY = "SpatialMemory"
    N_BACK = "NBack"
    TASK_SWITCH = "TaskSwitch"
    ATTENTIONAL_BLINK = "AttentionalBlink"
    DAILY_CHECK_IN = "DailyCheckIn"
    SLEEP_CHECK_IN = "SleepCheckIn"


class ActivityCategory(str, Enum):
    SLEEP = "sleep"
    PHYSICAL = "physical"
    COGNITION = "cognition"
    DAILY = "daily"

    @classmethod
    def parse(cls, raw: str) -> "ActivityCategory":
        value = str(raw or "").strip().lower()
        for member in cls:
            if member.value == value:
                return member
        raise UnknownCategoryError(raw)


class ReminderType(str, Enum):
    SLEEP = "sleep"
    PHYSICAL = "physical"
    COGNITION = "cognition"
    DAILY = "daily"


@dataclass(frozen=True)
class CategoryBehavior:
    ordinal: int
    # Rotation order; a remainder of 0 selects the last entry.
    rotation: tuple[str, ...]
    reminder: ReminderType
    title_key: str
    pending_detail_key: str
    # Physical and cognition are credited per week once the daily cadence ends.
    weekly_after_week_one: bool


CATEGORY_BEHAVIOR: dict[ActivityCategory, CategoryBehavior] = {
    ActivityCategory.SLEEP: CategoryBehavior(
        ordinal=0,
        rotation=(TaskIdentifier.SLEEP_CHECK_IN,),
        reminder=ReminderType.SLEEP,
        title_key="ACTIVITY_SLEEP",
        pending_detail_key="MINUTES_SLEEP",
        weekly_after_week_one=False,
    ),
    ActivityCategory.PHYSICAL: CategoryBehavior(
        ordinal=1,
        rotation=(TaskIdentifier.TAPPING, TaskIdentifier.RESTING_KINETIC_TREMOR),
        reminder=ReminderType.PHYSICAL,
        title_key="ACTIVITY_PHYSICAL",
        pending_detail_key="MINUTES_PHYSICAL",
        weekly_after_week_one=True,
    ),
    ActivityCategory.COGNITION: CategoryBehavior(
        ordinal=2,
        rotation=(
            TaskIdentifier.GO_NO_GO,
            TaskIdentifier.SYMBOL_SUBSTITUTION,
            TaskIdentifier.SPATIAL_MEMORY,
            TaskIdentifier.N_BACK,
            TaskIdentifier.TASK_SWITCH,
            TaskIdentifier.ATTENTIONAL_BLINK,
        ),
        reminder=ReminderType.COGNITION,
        title_key="ACTIVITY_COGNITION",
        pending_detail_key="MINUTES_COGNITION",
        weekly_after_week_one=True,
    ),
    ActivityCategory.DAILY: CategoryBehavior(
        ordinal=3,
        rotation=(TaskIdentifier.DAILY_CHECK_IN,),
        reminder=ReminderType.DAILY,
        title_key="ACTIVITY_DAILY",
        pending_detail_key="MINUTES_DAILY",
        weekly_after_week_one=False,
    ),
}


def _require_study_day(day_of_study: int) -> int:
    day = int(day_of_study)
    if day < 1:
        raise StudyDayOutOfRangeError(day)
    return day


def week_of_study(day_of_study: int) -> int:
    day = _require_study_day(day_of_study)
    return ((day - 1) // DAYS_PER_WEEK) + 1


def _rotate(rotation: tuple[str, ...], index: int) -> str:
    remainder = index % len(rotation)
    if remainder == 0:
        return rotation[-1]
    return rotation[remainder - 1]


def task_identifier(category: ActivityCategory, day_of_study: int) -> str:
    """
    Task the participant should run for ``category`` on ``day_of_study``.

    Week 1 rotates on the day number. From week 2 on the same rotation is keyed
    on the week number, so physical and cognition change once per week. The
    index switch at day 8 is not a continuation of the week 1 sequence.
    """
    day = _require_study_day(day_of_study)
    behavior = CATEGORY_BEHAVIOR[category]
    week = week_of_study(day)
    index = day if week <= 1 else week
    return _rotate(behavior.rotation, index)


def daily_categories(day_of_study: int) -> list[ActivityCategory]:
    categories = [ActivityCategory.DAILY, ActivityCategory.SLEEP]
    if day_of_study <= DAILY_CADENCE_LAST_DAY:
        categories.extend([ActivityCategory.PHYSICAL, ActivityCategory.COGNITION])
    return categories


def weekly_categories(day_of_study: int) -> list[ActivityCategory]:
    categories: list[ActivityCategory] = []
    if day_of_study > DAILY_CADENCE_LAST_DAY:
        categories.extend([ActivityCategory.PHYSICAL, ActivityCategory.COGNITION])
    return categories


def required_categories(day_of_study: int) -> set[ActivityCategory]:
    return set(daily_categories(day_of_study)) | set(weekly_categories(day_of_study))


def is_tracked_weekly(category: ActivityCategory, day_of_study: int) -> bool:
    return CATEGORY_BEHAVIOR[category].weekly_after_week_one and week_of_study(day_of_study) > 1


def completion_key(category: ActivityCategory, day_of_study: int) -> str:
    """Flag key: ``physicalDay3`` during week 1, ``physicalWeek2`` once tracked weekly."""
    day = _require_study_day(day_of_study)
    if is_tracked_weekly(category, day):
        return f"{category.value}Week{week_of_study(day)}"
    return f"{category.value}Day{day}"


def title_key(category: ActivityCategory) -> str:
    return CATEGORY_BEHAVIOR[category].title_key


def detail_key(category: ActivityCategory, day_of_study: int, is_complete: bool) -> str:
    if not is_complete:
        return CATEGORY_BEHAVIOR[category].pending_detail_key
    if CATEGORY_BEHAVIOR[category].weekly_after_week_one and day_of_study > DAILY_CADENCE_LAST_DAY:
        return "DONE_FOR_WEEK"
    return "DONE_FOR_DAY"


def reminder_type(category: ActivityCategory) -> ReminderType:
    return CATEGORY_BEHAVIOR[category].reminder


def remind_later_identifier(category: ActivityCategory) -> str:
    return f"{reminder_type(category).value}Later"
