from __future__ import annotations
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from core.exceptions import ValidationError
from .compatibility import CompatibilityAssessment, CompatibilityScorer
from .reschedule import RescheduleOptionGenerator, RescheduleOptions
from .resolver import AvailabilityResolver, AvailabilityVerdict
from .roster import NextAvailable, WorkerAvailability, WorkerRoster
from .slot_search import SlotSearchEngine, SlotSearchResult
from .store import SchedulingStore, business_tz
from .utilization import UtilizationEstimator, efficiency_rating, week_bounds


# -------- engine entry points (scoped to one business) --------

def resolve_availability(
    db: Session,
    *,
    business_id: int,
    worker_id: int,
    start: datetime,
    end: datetime,
    exclude_job_id: Optional[int] = None,
) -> AvailabilityVerdict:
    store = SchedulingStore(db)
    # tenancy check up front; the resolver itself only knows worker ids
    store.worker(worker_id, business_id)
    if exclude_job_id is not None:
        store.job(exclude_job_id, business_id)
    return AvailabilityResolver(store).resolve(worker_id, start, end, exclude_job_id=exclude_job_id)


def search_reschedule_slots(
    db: Session,
    *,
    business_id: int,
    job_id: int,
    preferred: Optional[datetime] = None,
    search_days: Optional[int] = None,
    candidate_worker_ids: Optional[Iterable[int]] = None,
    now: Optional[datetime] = None,
) -> SlotSearchResult:
    store = SchedulingStore(db)
    job = store.job(job_id, business_id)
    if candidate_worker_ids is None:
        if job.worker_id is None:
            raise ValidationError("candidate_worker_ids is required for an unassigned job")
        candidate_worker_ids = [job.worker_id]
    return SlotSearchEngine(store).search(
        job,
        preferred=preferred,
        search_days=search_days,
        candidate_worker_ids=list(candidate_worker_ids),
        now=now,
    )


def score_compatibility(
    db: Session,
    *,
    business_id: int,
    job_id: int,
    candidate_worker_id: int,
    original_worker_id: Optional[int] = None,
) -> CompatibilityAssessment:
    store = SchedulingStore(db)
    job = store.job(job_id, business_id)
    if original_worker_id is None:
        if job.worker_id is None:
            raise ValidationError("job has no assigned worker")
        original_worker_id = job.worker_id
    return CompatibilityScorer(store).assess(
        job.id, original_worker_id, candidate_worker_id, business_id=business_id
    )


def estimate_utilization(
    db: Session,
    *,
    business_id: int,
    worker_id: int,
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
) -> dict:
    """Utilization of a worker; defaults to the current local week."""
    store = SchedulingStore(db)
    worker = store.worker(worker_id, business_id)
    if window_start is None or window_end is None:
        if window_start is not None or window_end is not None:
            raise ValidationError("window_start and window_end must be given together")
        tz = business_tz(store.business(business_id))
        window_start, window_end = week_bounds(datetime.now(timezone.utc), tz)

    percent = UtilizationEstimator(store).estimate(worker.id, window_start, window_end)
    return {
        "worker_id": worker.id,
        "window_start": window_start,
        "window_end": window_end,
        "utilization": percent,
        "efficiency_rating": efficiency_rating(percent),
    }


def generate_reschedule_options(
    db: Session,
    *,
    business_id: int,
    job_id: int,
    preferred: Optional[datetime] = None,
    search_days: Optional[int] = None,
    include_other_workers: bool = False,
    now: Optional[datetime] = None,
) -> RescheduleOptions:
    return RescheduleOptionGenerator(SchedulingStore(db)).generate(
        job_id,
        preferred=preferred,
        search_days=search_days,
        include_other_workers=include_other_workers,
        now=now,
        business_id=business_id,
    )


def check_all_workers(
    db: Session,
    *,
    business_id: int,
    start: datetime,
    end: datetime,
    exclude_job_id: Optional[int] = None,
) -> list[WorkerAvailability]:
    store = SchedulingStore(db)
    if exclude_job_id is not None:
        store.job(exclude_job_id, business_id)
    return WorkerRoster(store).check_all(business_id, start, end, exclude_job_id=exclude_job_id)


def next_available_slots(
    db: Session,
    *,
    business_id: int,
    job_id: int,
    after: Optional[datetime] = None,
    search_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[NextAvailable]:
    store = SchedulingStore(db)
    job = store.job(job_id, business_id)
    return WorkerRoster(store).next_available(job, after=after, search_days=search_days, now=now)
