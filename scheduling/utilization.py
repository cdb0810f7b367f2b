from __future__ import annotations
import logging
from datetime import datetime, timedelta, time, tzinfo
from typing import Optional

from core.config_loader import settings
from core.exceptions import UpstreamReadError

from .intervals import as_utc, day_of_week, local_datetime
from .resolver import validate_interval
from .store import SchedulingStore

logger = logging.getLogger(__name__)


def efficiency_rating(percent: float) -> str:
    """Display band for a utilization percentage; never used as a gate."""
    if percent <= 60:
        return "optimal"
    if percent <= 80:
        return "good"
    if percent <= 95:
        return "busy"
    return "overloaded"


def week_bounds(instant: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    # local week, Sunday as first day
    local_day = as_utc(instant).astimezone(tz).date()
    sunday = local_day - timedelta(days=day_of_week(local_day))
    start = local_datetime(sunday, time(0, 0), tz)
    end = local_datetime(sunday + timedelta(days=7), time(0, 0), tz)
    return as_utc(start), as_utc(end)


def utilization_percent(
    booked_minutes: float,
    window_start: datetime,
    window_end: datetime,
    capacity_hours_per_week: float,
) -> float:
    window_hours = (window_end - window_start).total_seconds() / 3600.0
    capacity_hours = capacity_hours_per_week * window_hours / (7 * 24)
    if capacity_hours <= 0:
        return 100.0
    percent = (booked_minutes / 60.0) / capacity_hours * 100.0
    return round(min(100.0, max(0.0, percent)), 1)


class UtilizationEstimator:
    def __init__(
        self,
        store: SchedulingStore,
        *,
        capacity_hours_per_week: Optional[float] = None,
        fallback_percent: Optional[float] = None,
    ):
        self.store = store
        self.capacity_hours_per_week = capacity_hours_per_week or settings.FULL_CAPACITY_HOURS_PER_WEEK
        self.fallback_percent = (
            settings.UTILIZATION_FALLBACK_PERCENT if fallback_percent is None else fallback_percent
        )

    def estimate(
        self,
        worker_id: int,
        window_start: datetime,
        window_end: datetime,
        exclude_job_id: Optional[int] = None,
    ) -> float:
        """Booked share of nominal capacity over the window, 0..100.

        A failed read yields the neutral fallback instead of 0 or 100 so a
        transient outage does not push the scorer toward or away from a worker.
        """
        window_start, window_end = validate_interval(window_start, window_end)
        try:
            minutes = self.store.booked_minutes(worker_id, window_start, window_end, exclude_job_id)
        except UpstreamReadError as exc:
            logger.warning(
                "utilization of worker %s unknown, using %.0f%%: %s",
                worker_id, self.fallback_percent, exc.detail,
            )
            return self.fallback_percent
        return utilization_percent(minutes, window_start, window_end, self.capacity_hours_per_week)
