from __future__ import annotations

import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from services.activity_types import (  # noqa: E402
    ActivityCategory,
    CATEGORY_BEHAVIOR,
    TaskIdentifier,
    completion_key,
    daily_categories,
    detail_key,
    remind_later_identifier,
    required_categories,
    task_identifier,
    title_key,
    week_of_study,
    weekly_categories,
)
from services.errors import StudyDayOutOfRangeError, UnknownCategoryError  # noqa: E402


def test_week_of_study_boundaries():
    for day in range(1, 15):
        assert week_of_study(day) == ((day - 1) // 7) + 1
    assert {week_of_study(day) for day in range(1, 8)} == {1}
    assert {week_of_study(day) for day in range(8, 15)} == {2}
    assert week_of_study(15) == 3


def test_physical_rotates_daily_in_week_one():
    expected = [
        TaskIdentifier.TAPPING,
        TaskIdentifier.RESTING_KINETIC_TREMOR,
        TaskIdentifier.TAPPING,
        TaskIdentifier.RESTING_KINETIC_TREMOR,
        TaskIdentifier.TAPPING,
        TaskIdentifier.RESTING_KINETIC_TREMOR,
        TaskIdentifier.TAPPING,
    ]
    assert [task_identifier(ActivityCategory.PHYSICAL, day) for day in range(1, 8)] == expected


def test_physical_rotates_weekly_after_week_one():
    assert task_identifier(ActivityCategory.PHYSICAL, 8) == TaskIdentifier.RESTING_KINETIC_TREMOR
    # Whole of week 2 keeps the same task.
    assert {task_identifier(ActivityCategory.PHYSICAL, day) for day in range(8, 15)} == {
        TaskIdentifier.RESTING_KINETIC_TREMOR
    }
    assert task_identifier(ActivityCategory.PHYSICAL, 15) == TaskIdentifier.TAPPING


def test_cognition_rotation_in_week_one():
    assert [task_identifier(ActivityCategory.COGNITION, day) for day in range(1, 7)] == [
        TaskIdentifier.GO_NO_GO,
        TaskIdentifier.SYMBOL_SUBSTITUTION,
        TaskIdentifier.SPATIAL_MEMORY,
        TaskIdentifier.N_BACK,
        TaskIdentifier.TASK_SWITCH,
        TaskIdentifier.ATTENTIONAL_BLINK,
    ]
    assert task_identifier(ActivityCategory.COGNITION, 7) == TaskIdentifier.GO_NO_GO


def test_cognition_rotation_keys_on_week_after_week_one():
    # Week 2 -> remainder 2, week 6 -> remainder 0 (last entry), week 7 -> remainder 1.
    assert task_identifier(ActivityCategory.COGNITION, 8) == TaskIdentifier.SYMBOL_SUBSTITUTION
    assert task_identifier(ActivityCategory.COGNITION, 14) == TaskIdentifier.SYMBOL_SUBSTITUTION
    assert task_identifier(ActivityCategory.COGNITION, 36) == TaskIdentifier.ATTENTIONAL_BLINK
    assert task_identifier(ActivityCategory.COGNITION, 43) == TaskIdentifier.GO_NO_GO


def test_constant_categories():
    for day in (1, 7, 8, 30):
        assert task_identifier(ActivityCategory.DAILY, day) == TaskIdentifier.DAILY_CHECK_IN
        assert task_identifier(ActivityCategory.SLEEP, day) == TaskIdentifier.SLEEP_CHECK_IN


@pytest.mark.parametrize("day", [0, -1, -10])
def test_rotation_rejects_days_before_study_start(day):
    with pytest.raises(StudyDayOutOfRangeError):
        task_identifier(ActivityCategory.PHYSICAL, day)
    with pytest.raises(ValueError):
        week_of_study(day)


def test_physical_and_cognition_move_from_daily_to_weekly_after_day_seven():
    for day in range(1, 8):
        assert ActivityCategory.PHYSICAL in daily_categories(day)
        assert ActivityCategory.COGNITION in daily_categories(day)
        assert weekly_categories(day) == []
    for day in (8, 9, 21):
        assert daily_categories(day) == [ActivityCategory.DAILY, ActivityCategory.SLEEP]
        assert weekly_categories(day) == [ActivityCategory.PHYSICAL, ActivityCategory.COGNITION]
    assert required_categories(3) == set(ActivityCategory)
    assert required_categories(12) == set(ActivityCategory)


def test_completion_keys():
    assert completion_key(ActivityCategory.PHYSICAL, 3) == "physicalDay3"
    assert completion_key(ActivityCategory.PHYSICAL, 10) == "physicalWeek2"
    assert completion_key(ActivityCategory.COGNITION, 11) == "cognitionWeek2"
    assert completion_key(ActivityCategory.SLEEP, 10) == "sleepDay10"
    assert completion_key(ActivityCategory.DAILY, 22) == "dailyDay22"


def test_text_keys_and_reminders():
    assert title_key(ActivityCategory.COGNITION) == "ACTIVITY_COGNITION"
    assert detail_key(ActivityCategory.SLEEP, 3, is_complete=False) == "MINUTES_SLEEP"
    assert detail_key(ActivityCategory.PHYSICAL, 3, is_complete=True) == "DONE_FOR_DAY"
    assert detail_key(ActivityCategory.PHYSICAL, 9, is_complete=True) == "DONE_FOR_WEEK"
    assert detail_key(ActivityCategory.DAILY, 9, is_complete=True) == "DONE_FOR_DAY"
    assert remind_later_identifier(ActivityCategory.PHYSICAL) == "physicalLater"
    assert [CATEGORY_BEHAVIOR[c].ordinal for c in ActivityCategory] == [0, 1, 2, 3]


def test_category_parse():
    assert ActivityCategory.parse(" Cognition ") is ActivityCategory.COGNITION
    with pytest.raises(UnknownCategoryError):
        ActivityCategory.parse("mood")


def test_remind_later_identifier_per_category():
    assert [remind_later_identifier(c) for c in ActivityCategory] == [
        "sleepLater",
        "physicalLater",
        "cognitionLater",
        "dailyLater",
    ]
