from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Protocol
from zoneinfo import ZoneInfo

from utils.datetime_utils import calendar_days_between, start_of_day


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in the study timezone."""

    def __init__(self, tz_name: str | None = None) -> None:
        self.tz_name = tz_name

    def now(self) -> datetime:
        if self.tz_name:
            return datetime.now(ZoneInfo(self.tz_name))
        return datetime.now()


class FixedClock:
    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def now(self) -> datetime:
        return self.moment

    def advance_to(self, moment: datetime) -> None:
        self.moment = moment


@dataclass(frozen=True)
class ScheduledActivity:
    activity_identifier: str
    scheduled_on: datetime
    guid: str | None = None
    payload: dict[str, Any] = field(default_factory=dict, compare=False)


def earliest_scheduled_day(
    activities: Iterable[ScheduledActivity],
    tz_name: str | None = None,
) -> datetime | None:
    earliest: datetime | None = None
    for activity in activities:
        scheduled = start_of_day(activity.scheduled_on, tz_name)
        if earliest is None or scheduled < earliest:
            earliest = scheduled
    return earliest


def resolve_study_start_date(
    activities: Iterable[ScheduledActivity],
    clock: Clock,
    tz_name: str | None = None,
    fixed_start: datetime | None = None,
) -> datetime:
    """
    Day zero of the study: the earliest day the backend issued a schedule.

    Schedules are issued when the participant first signs in, so the oldest
    ``scheduled_on`` marks the start. The backend has delivered schedules out
    of order before, so every record is checked instead of trusting the first.
    With no schedules yet, today is day zero.

    A previously recorded ``fixed_start`` can only move earlier, never later,
    so the day of study never goes backwards after a re-sync.
    """
    candidates = [start_of_day(clock.now(), tz_name)]
    earliest = earliest_scheduled_day(activities, tz_name)
    if earliest is not None:
        candidates.append(earliest)
    if fixed_start is not None:
        candidates.append(start_of_day(fixed_start, tz_name))
    return min(candidates)


def day_of_study(start: datetime | date, at: datetime | date, tz_name: str | None = None) -> int:
    """1-based calendar day of ``at`` relative to ``start``; 0 or less before the study began."""
    return calendar_days_between(start, at, tz_name) + 1
