from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from core.exceptions import UpstreamReadError, ValidationError

from .intervals import as_utc, contains
from .store import SchedulingStore
from .worker_calendar import Booking, WorkerCalendar

logger = logging.getLogger(__name__)

REASON_INACTIVE = "Worker is not active"
REASON_OUTSIDE_HOURS = "Outside available hours"
REASON_AVAILABLE = "Available"
REASON_UNKNOWN = "Availability could not be determined"


@dataclass
class AvailabilityVerdict:
    available: bool
    reason: str
    conflicts: list[Booking] = field(default_factory=list)
    within_hours: bool = False
    # False when the store could not be read: "unknown", not "busy"
    determinate: bool = True


def unknown_verdict(detail: str) -> AvailabilityVerdict:
    return AvailabilityVerdict(
        available=False,
        reason=f"{REASON_UNKNOWN}: {detail}",
        determinate=False,
    )


def validate_interval(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    start = as_utc(start)
    end = as_utc(end)
    if end <= start:
        raise ValidationError("end must be after start")
    return start, end


def evaluate(
    calendar: WorkerCalendar,
    start: datetime,
    end: datetime,
    exclude_job_id: Optional[int] = None,
) -> AvailabilityVerdict:
    """Verdict for [start, end) against an already loaded calendar."""
    if not calendar.is_active:
        return AvailabilityVerdict(available=False, reason=REASON_INACTIVE)

    day = calendar.local_date(start)
    # must fit inside a single window; a job may not straddle a gap between slots
    within_hours = any(contains(s, e, start, end) for s, e in calendar.hours_on(day))
    conflicts = calendar.conflicts(start, end, exclude_job_id)

    if not within_hours:
        reason = REASON_OUTSIDE_HOURS
    elif conflicts:
        reason = "Conflicts: " + ", ".join(b.title for b in conflicts)
    else:
        reason = REASON_AVAILABLE

    return AvailabilityVerdict(
        available=within_hours and not conflicts,
        reason=reason,
        conflicts=conflicts,
        within_hours=within_hours,
    )


class AvailabilityResolver:
    """Answers "can this worker take [start, end)?" from the weekly pattern,
    date exceptions and existing bookings."""

    def __init__(self, store: SchedulingStore):
        self.store = store

    def resolve(
        self,
        worker_id: int,
        start: datetime,
        end: datetime,
        exclude_job_id: Optional[int] = None,
    ) -> AvailabilityVerdict:
        start, end = validate_interval(start, end)
        try:
            calendar = self.store.load_calendar(worker_id, start, end)
        except UpstreamReadError as exc:
            logger.warning("availability of worker %s unknown: %s", worker_id, exc.detail)
            return unknown_verdict(exc.detail)
        return evaluate(calendar, start, end, exclude_job_id)
