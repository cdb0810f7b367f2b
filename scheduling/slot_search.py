"""Grid search for replacement slots when a job has to move.

The store is read once per search (candidate workers, their calendars for the
window and their weekly utilization); every grid point is then judged in memory
with the same verdict logic ``AvailabilityResolver`` uses.
"""
from __future__ import annotations
import logging
import time as clock
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Iterable, Iterator, Optional

from core.config_loader import settings
from core.exceptions import UpstreamReadError, ValidationError
from business.models import Business
from job.models import Job
from worker.models import WorkerStatus

from .intervals import as_utc, day_of_week, local_datetime, overlaps
from .resolver import REASON_UNKNOWN, evaluate
from .store import SchedulingStore, business_tz
from .utilization import UtilizationEstimator, week_bounds

logger = logging.getLogger(__name__)

REASON_NO_WORKERS = "no active candidate workers"
REASON_WINDOW_TOO_SHORT = "window too short given minimum-notice constraints"
REASON_BEYOND_HORIZON = "search starts beyond the advance-booking horizon"
REASON_NO_WORKING_HOURS = "no working hours in the search window"
REASON_NO_RECURRING = "no recurring availability defined for any candidate"
REASON_NO_HOURS_IN_WINDOW = "no candidate availability inside business hours for the search window"
REASON_FULLY_BOOKED = "fully booked for the entire window"
REASON_DEADLINE = "search deadline reached before any slot was confirmed"


@dataclass
class Candidate:
    worker_id: int
    worker_name: str
    start: datetime
    end: datetime
    score: float = 0.0
    utilization: float = 0.0
    is_suggested: bool = False


@dataclass
class SlotSearchResult:
    window_start: datetime
    window_end: datetime
    slots: list[Candidate] = field(default_factory=list)
    nearest_available_slot: Optional[Candidate] = None
    no_availability_reason: Optional[str] = None
    truncated: bool = False
    availability_unknown: bool = False
    evaluated: int = 0


def search_window(
    business: Business,
    now: datetime,
    preferred: Optional[datetime],
    search_days: int,
) -> tuple[datetime, datetime]:
    """[start, end) to scan: from max(now, preferred) for search_days days,
    clipped by the minimum notice and the advance-booking horizon."""
    now = as_utc(now)
    base = max(now, as_utc(preferred)) if preferred else now
    start = max(base, now + timedelta(hours=business.minimum_notice_hours or 0))
    end = min(base + timedelta(days=search_days), now + timedelta(days=business.max_advance_booking_days))
    return start, end


def grid_points(
    business: Business,
    tz: tzinfo,
    window_start: datetime,
    window_end: datetime,
    duration_minutes: int,
    granularity_minutes: int,
) -> list[datetime]:
    """UTC start instants on the business grid, in chronological order.

    A point qualifies when its interval ends by closing time, stays clear of
    the break and the point itself lies in [window_start, window_end).
    """
    step = timedelta(minutes=granularity_minutes)
    duration = timedelta(minutes=duration_minutes)
    working_days = set(business.working_days or ())
    points: list[datetime] = []

    day = window_start.astimezone(tz).date()
    last_day = window_end.astimezone(tz).date()
    while day <= last_day:
        if day_of_week(day) in working_days:
            points.extend(_day_grid(business, tz, day, duration, step, window_start, window_end))
        day += timedelta(days=1)
    return points


def _day_grid(
    business: Business,
    tz: tzinfo,
    day: date,
    duration: timedelta,
    step: timedelta,
    window_start: datetime,
    window_end: datetime,
) -> Iterator[datetime]:
    # step in wall-clock time so a DST change keeps the grid on business hours
    open_at = datetime.combine(day, business.start_time)
    close_at = datetime.combine(day, business.end_time)
    break_at = None
    if business.break_start and business.break_end:
        break_at = (datetime.combine(day, business.break_start), datetime.combine(day, business.break_end))

    point = open_at
    while point + duration <= close_at:
        in_break = break_at is not None and overlaps(point, point + duration, *break_at)
        instant = as_utc(local_datetime(day, point.time(), tz))
        if not in_break and window_start <= instant < window_end:
            yield instant
        point += step


def proximity_score(start: datetime, anchor: datetime, window_start: datetime, window_end: datetime) -> float:
    # 100 at the anchor, 0 at the far edge of the window
    span = max(abs(window_start - anchor), abs(window_end - anchor))
    if span <= timedelta(0):
        return 100.0
    ratio = abs(start - anchor) / span
    return round(max(0.0, 100.0 * (1.0 - ratio)), 1)


class _Deadline:
    def __init__(self, seconds: float):
        self.expires = clock.monotonic() + seconds

    def passed(self) -> bool:
        return clock.monotonic() >= self.expires


class SlotSearchEngine:
    def __init__(
        self,
        store: SchedulingStore,
        estimator: Optional[UtilizationEstimator] = None,
        *,
        granularity_minutes: Optional[int] = None,
        max_results: Optional[int] = None,
        suggested_count: Optional[int] = None,
    ):
        self.store = store
        self.estimator = estimator or UtilizationEstimator(store)
        self.granularity_minutes = granularity_minutes or settings.SEARCH_GRANULARITY_MINUTES
        self.max_results = max_results or settings.SEARCH_MAX_RESULTS
        self.suggested_count = settings.SEARCH_SUGGESTED_COUNT if suggested_count is None else suggested_count

    def search(
        self,
        job: Job,
        preferred: Optional[datetime] = None,
        search_days: Optional[int] = None,
        candidate_worker_ids: Iterable[int] = (),
        now: Optional[datetime] = None,
        deadline_seconds: Optional[float] = None,
        rank: bool = True,
    ) -> SlotSearchResult:
        """Nearest feasible slot plus up to ``max_results`` slots ranked by
        closeness to the anchor. With ``rank=False`` only the nearest slot is
        looked for."""
        search_days = settings.SEARCH_DEFAULT_DAYS if search_days is None else search_days
        if search_days < 1 or search_days > settings.SEARCH_MAX_DAYS:
            raise ValidationError(f"search_days must be between 1 and {settings.SEARCH_MAX_DAYS}")
        if not job.duration_minutes or job.duration_minutes <= 0:
            raise ValidationError("job duration must be positive")

        now = as_utc(now) if now else datetime.now(timezone.utc)
        deadline = _Deadline(settings.SEARCH_DEADLINE_SECONDS if deadline_seconds is None else deadline_seconds)

        business = self.store.business(job.business_id)
        tz = business_tz(business)
        window_start, window_end = search_window(business, now, preferred, search_days)
        result = SlotSearchResult(window_start=window_start, window_end=window_end)

        # unknown ids are an error; inactive ones just drop out
        try:
            workers = [
                w for w in self.store.workers(job.business_id, candidate_worker_ids)
                if w.status == WorkerStatus.active
            ]
        except UpstreamReadError as exc:
            return self._unknown(result, exc)
        if not workers:
            result.no_availability_reason = REASON_NO_WORKERS
            return result
        if window_end <= window_start:
            horizon = now + timedelta(days=business.max_advance_booking_days)
            if window_start >= horizon:
                result.no_availability_reason = REASON_BEYOND_HORIZON
            else:
                result.no_availability_reason = REASON_WINDOW_TOO_SHORT
            return result

        points = grid_points(
            business, tz, window_start, window_end, job.duration_minutes, self.granularity_minutes
        )
        if not points:
            result.no_availability_reason = REASON_NO_WORKING_HOURS
            return result

        duration = timedelta(minutes=job.duration_minutes)
        try:
            calendars = self.store.load_calendars(workers, tz, window_start, window_end + duration)
        except UpstreamReadError as exc:
            return self._unknown(result, exc)

        if not any(c.has_any_availability() for c in calendars.values()):
            result.no_availability_reason = REASON_NO_RECURRING
            return result

        anchor = as_utc(preferred) if preferred else as_utc(job.scheduled_at)
        week_start, week_end = week_bounds(anchor, tz)
        utilization = {
            w.id: self.estimator.estimate(w.id, week_start, week_end, exclude_job_id=job.id)
            for w in workers
        }

        memo: dict[tuple[int, datetime], bool] = {}
        seen_within_hours = False

        def feasible(worker_id: int, start: datetime) -> bool:
            nonlocal seen_within_hours
            key = (worker_id, start)
            if key not in memo:
                verdict = evaluate(calendars[worker_id], start, start + duration, exclude_job_id=job.id)
                seen_within_hours = seen_within_hours or verdict.within_hours
                memo[key] = verdict.available
            return memo[key]

        def candidate(worker_id: int, start: datetime) -> Candidate:
            return Candidate(
                worker_id=worker_id,
                worker_name=calendars[worker_id].name,
                start=start,
                end=start + duration,
                score=proximity_score(start, anchor, window_start, window_end),
                utilization=utilization[worker_id],
            )

        ordered_workers = sorted(calendars, key=lambda wid: (utilization[wid], wid))

        # soonest feasible slot, independent of the ranking
        for start in points:
            if deadline.passed():
                result.truncated = True
                break
            hit = next((wid for wid in ordered_workers if feasible(wid, start)), None)
            if hit is not None:
                result.nearest_available_slot = candidate(hit, start)
                break

        # best slots: walk points closest-to-anchor first and stop at max_results
        if rank and result.nearest_available_slot is not None:
            ranked = sorted(
                ((start, wid) for start in points for wid in calendars),
                key=lambda p: (abs(p[0] - anchor), utilization[p[1]], p[1], p[0]),
            )
            for start, wid in ranked:
                if len(result.slots) >= self.max_results:
                    break
                if deadline.passed():
                    result.truncated = True
                    break
                if feasible(wid, start):
                    result.slots.append(candidate(wid, start))

        for c in result.slots[: self.suggested_count]:
            c.is_suggested = True
        result.evaluated = len(memo)

        if not result.slots and result.nearest_available_slot is None:
            if result.truncated:
                result.no_availability_reason = REASON_DEADLINE
            elif not seen_within_hours:
                result.no_availability_reason = REASON_NO_HOURS_IN_WINDOW
            else:
                result.no_availability_reason = REASON_FULLY_BOOKED

        logger.debug(
            "slot search job=%s workers=%s points=%s evaluated=%s found=%s truncated=%s",
            job.id, len(calendars), len(points), result.evaluated, len(result.slots), result.truncated,
        )
        return result

    @staticmethod
    def _unknown(result: SlotSearchResult, exc: UpstreamReadError) -> SlotSearchResult:
        logger.warning("slot search could not read availability: %s", exc.detail)
        result.availability_unknown = True
        result.no_availability_reason = f"{REASON_UNKNOWN}: {exc.detail}"
        return result
