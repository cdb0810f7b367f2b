"""Half-open interval predicates and UTC helpers."""
from __future__ import annotations
from datetime import date, datetime, time, timezone


def as_utc(dt: datetime) -> datetime:
    # naive values come back from backends that drop offsets; they were stored as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_datetime(day: date, t: time, tz) -> datetime:
    """Wall-clock ``t`` on ``day`` in a pytz zone, with the offset in force that day."""
    return tz.localize(datetime.combine(day, t))


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """[a_start, a_end) and [b_start, b_end) share at least one instant.

    Touching intervals (a_end == b_start) do not overlap.
    """
    return a_start < b_end and b_start < a_end


def contains(outer_start: datetime, outer_end: datetime, start: datetime, end: datetime) -> bool:
    """[start, end) lies entirely inside [outer_start, outer_end)."""
    return outer_start <= start and end <= outer_end


def day_of_week(day: date) -> int:
    """Weekday number as stored in weekly availability: 0=Sunday .. 6=Saturday."""
    return day.isoweekday() % 7
