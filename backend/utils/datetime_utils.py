from datetime import datetime, date
from zoneinfo import ZoneInfo


def local_date(value: datetime | date, tz_name: str | None = None) -> date:
    """Calendar date of ``value`` in the given timezone.

    Aware datetimes are converted into ``tz_name`` first. Naive datetimes and
    plain dates are taken as already being local to the study calendar.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None and tz_name:
            try:
                return value.astimezone(ZoneInfo(tz_name)).date()
            except Exception:
                pass
        return value.date()
    return value


def start_of_day(value: datetime | date, tz_name: str | None = None) -> datetime:
    """Return local midnight of the day containing ``value`` as a naive datetime."""
    d = local_date(value, tz_name)
    return datetime(d.year, d.month, d.day)


def calendar_days_between(start: datetime | date, end: datetime | date, tz_name: str | None = None) -> int:
    """Whole calendar days from ``start`` to ``end``, ignoring time of day."""
    return (local_date(end, tz_name) - local_date(start, tz_name)).days
