from __future__ import annotations

import sys
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from db.database import Base  # noqa: E402
from db.models import CompletionFlag  # noqa: E402
from services.activity_types import ActivityCategory  # noqa: E402
from services.completion_tracker import CompletionTracker  # noqa: E402
from services.flag_store import InMemoryFlagStore, SqlFlagStore  # noqa: E402


def _new_db():
    engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)()


def test_week_one_completion_is_per_day():
    store = InMemoryFlagStore()
    tracker = CompletionTracker(store)

    tracker.mark_complete(ActivityCategory.PHYSICAL, 3)

    assert store.keys() == {"physicalDay3"}
    assert tracker.is_complete(ActivityCategory.PHYSICAL, 3) is True
    assert tracker.is_complete(ActivityCategory.PHYSICAL, 4) is False


def test_completion_after_week_one_covers_the_whole_week():
    store = InMemoryFlagStore()
    tracker = CompletionTracker(store)

    tracker.mark_complete(ActivityCategory.PHYSICAL, 10)

    assert store.keys() == {"physicalWeek2"}
    assert tracker.is_complete(ActivityCategory.PHYSICAL, 11) is True
    assert tracker.is_complete(ActivityCategory.PHYSICAL, 14) is True
    assert tracker.is_complete(ActivityCategory.PHYSICAL, 15) is False
    assert tracker.is_complete(ActivityCategory.COGNITION, 11) is False


def test_daily_and_sleep_stay_per_day_after_week_one():
    tracker = CompletionTracker(InMemoryFlagStore())

    tracker.mark_complete(ActivityCategory.SLEEP, 10)

    assert tracker.is_complete(ActivityCategory.SLEEP, 10) is True
    assert tracker.is_complete(ActivityCategory.SLEEP, 11) is False


def test_mark_complete_twice_is_a_no_op():
    store = InMemoryFlagStore()
    tracker = CompletionTracker(store)

    tracker.mark_complete(ActivityCategory.DAILY, 2)
    tracker.mark_complete(ActivityCategory.DAILY, 2)

    assert tracker.is_complete(ActivityCategory.DAILY, 2) is True
    assert store.keys() == {"dailyDay2"}


def test_end_of_study_flags():
    tracker = CompletionTracker(InMemoryFlagStore())
    assert tracker.is_end_of_study_complete("Tapping") is False

    tracker.complete_end_of_study("Tapping")

    assert tracker.is_end_of_study_complete("Tapping") is True
    assert tracker.is_end_of_study_complete("NBack") is False


def test_sql_store_persists_flags_per_participant():
    db = _new_db()
    tracker_a = CompletionTracker(SqlFlagStore(db, "participant-a"))
    tracker_b = CompletionTracker(SqlFlagStore(db, "participant-b"))

    tracker_a.mark_complete(ActivityCategory.COGNITION, 9)
    tracker_a.mark_complete(ActivityCategory.COGNITION, 12)
    tracker_a.complete_end_of_study("GoNoGo")

    assert tracker_a.is_complete(ActivityCategory.COGNITION, 13) is True
    assert tracker_b.is_complete(ActivityCategory.COGNITION, 13) is False
    assert tracker_a.is_end_of_study_complete("GoNoGo") is True

    keys = sorted(
        row.flag_key
        for row in db.query(CompletionFlag).filter(CompletionFlag.participant_id == "participant-a").all()
    )
    assert keys == ["cognitionWeek2", "endOfStudyCompleteGoNoGo"]


def test_sql_store_set_flag_is_idempotent():
    db = _new_db()
    store = SqlFlagStore(db, "participant-c")

    store.set_flag("sleepDay1")
    store.set_flag("sleepDay1")

    assert store.get_flag("sleepDay1") is True
    assert db.query(CompletionFlag).count() == 1
