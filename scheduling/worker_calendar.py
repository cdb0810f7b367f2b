"""Per-worker availability snapshot.

A ``WorkerCalendar`` holds everything the verdict needs for one worker over a
window (weekly pattern, date exceptions, blocking bookings), so interval math
runs in memory once the reads are done.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Union

from .intervals import as_utc, day_of_week, local_datetime, overlaps


@dataclass(frozen=True)
class WeeklyPattern:
    """Recurring slots for one weekday. Slots are additive and never merged."""
    slots: tuple[tuple[time, time], ...] = ()


@dataclass(frozen=True)
class ExceptionOverride:
    """Date-specific override that replaces the weekly pattern for that date."""
    is_available: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None


EffectiveAvailability = Union[WeeklyPattern, ExceptionOverride]


@dataclass(frozen=True)
class Booking:
    job_id: int
    title: str
    start: datetime
    end: datetime

    @property
    def id(self) -> int:
        return self.job_id


@dataclass
class WorkerCalendar:
    worker_id: int
    name: str
    is_active: bool
    tz: tzinfo
    skills: frozenset[str] = frozenset()
    weekly: dict[int, tuple[tuple[time, time], ...]] = field(default_factory=dict)
    exceptions: dict[date, ExceptionOverride] = field(default_factory=dict)
    bookings: list[Booking] = field(default_factory=list)

    def local_date(self, instant: datetime) -> date:
        return as_utc(instant).astimezone(self.tz).date()

    def effective_on(self, day: date) -> EffectiveAvailability:
        override = self.exceptions.get(day)
        if override is not None:
            return override
        return WeeklyPattern(self.weekly.get(day_of_week(day), ()))

    def hours_on(self, day: date) -> list[tuple[datetime, datetime]]:
        """Bookable intervals for a local date, each an independent window."""
        effective = self.effective_on(day)
        if isinstance(effective, ExceptionOverride):
            if not effective.is_available:
                return []
            if effective.start_time is None or effective.end_time is None:
                # available all day
                start = local_datetime(day, time(0, 0), self.tz)
                end = local_datetime(day + timedelta(days=1), time(0, 0), self.tz)
                return [(start, end)]
            return [(
                local_datetime(day, effective.start_time, self.tz),
                local_datetime(day, effective.end_time, self.tz),
            )]
        return [
            (local_datetime(day, st, self.tz), local_datetime(day, en, self.tz))
            for st, en in effective.slots
        ]

    def has_any_availability(self) -> bool:
        if any(self.weekly.values()):
            return True
        return any(e.is_available for e in self.exceptions.values())

    def conflicts(self, start: datetime, end: datetime, exclude_job_id: Optional[int] = None) -> list[Booking]:
        return [
            b for b in self.bookings
            if b.job_id != exclude_job_id and overlaps(start, end, b.start, b.end)
        ]
