from __future__ import annotations
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Iterable, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError, UpstreamReadError, SlotUnavailableError
from scheduling.intervals import as_utc, overlaps
from .models import Job, JobStatus, NON_BLOCKING_STATUSES, MOVABLE_STATUSES, MAX_JOB_DURATION_MINUTES
from worker.models import Worker, WorkerStatus

logger = logging.getLogger(__name__)


# -------- queries --------

def get_job(db: Session, job_id: int) -> Job | None:
    return db.get(Job, job_id)


def get_job_for_business(db: Session, job_id: int, business_id: int) -> Job | None:
    stmt = select(Job).where(Job.id == job_id, Job.business_id == business_id)
    return db.scalars(stmt).first()


def get_blocking_jobs(
    db: Session,
    *,
    worker_ids: Iterable[int],
    start: datetime,
    end: datetime,
    exclude_job_id: Optional[int] = None,
) -> List[Job]:
    """Jobs that hold a worker's time and overlap [start, end)."""
    start = as_utc(start)
    end = as_utc(end)
    stmt = select(Job).where(
        Job.worker_id.in_(list(worker_ids)),
        Job.status.not_in(NON_BLOCKING_STATUSES),
        Job.scheduled_at < end,
        # a job starting up to MAX_JOB_DURATION before the window can still run into it
        Job.scheduled_at > start - timedelta(minutes=MAX_JOB_DURATION_MINUTES),
    )
    if exclude_job_id is not None:
        stmt = stmt.where(Job.id != exclude_job_id)
    stmt = stmt.order_by(Job.scheduled_at.asc(), Job.id.asc())

    rows = []
    for job in db.scalars(stmt):
        if overlaps(start, end, as_utc(job.scheduled_at), job.ends_at):
            rows.append(job)
    return rows


def get_booked_jobs(
    db: Session,
    *,
    worker_id: int,
    start: datetime,
    end: datetime,
    exclude_job_id: Optional[int] = None,
) -> List[Job]:
    """Non-cancelled jobs whose start falls in [start, end); used for utilization."""
    stmt = select(Job).where(
        Job.worker_id == worker_id,
        Job.status != JobStatus.cancelled,
        Job.scheduled_at >= as_utc(start),
        Job.scheduled_at < as_utc(end),
    )
    if exclude_job_id is not None:
        stmt = stmt.where(Job.id != exclude_job_id)
    return list(db.scalars(stmt))


# -------- commit --------

def lock_worker(db: Session, worker_id: int, business_id: int) -> Worker:
    """Row-lock the worker so concurrent commits for it serialize (no-op on SQLite)."""
    worker = db.scalars(
        select(Worker)
        .where(Worker.id == worker_id, Worker.business_id == business_id)
        .with_for_update()
    ).first()
    if not worker:
        raise NotFoundError("worker not found")
    return worker


def recheck_slot(db: Session, *, worker_id: int, start: datetime, end: datetime, job_id: int) -> None:
    """Re-run the availability verdict inside the caller's transaction."""
    from scheduling.resolver import AvailabilityResolver
    from scheduling.store import SchedulingStore

    verdict = AvailabilityResolver(SchedulingStore(db)).resolve(
        worker_id, start, end, exclude_job_id=job_id
    )
    if not verdict.determinate:
        raise UpstreamReadError(verdict.reason)
    if not verdict.available:
        raise SlotUnavailableError(f"Worker is not available for the new time slot: {verdict.reason}")


def reschedule_job(
    db: Session,
    *,
    business_id: int,
    job_id: int,
    new_start: datetime,
    new_worker_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> dict:
    """
    Commit a manual reschedule:
    - lock the target worker
    - re-validate the new interval (the job never conflicts with itself)
    - move the job and commit in the same transaction
    """
    job = get_job_for_business(db, job_id, business_id)
    if not job:
        raise NotFoundError("job not found")
    if job.status not in MOVABLE_STATUSES:
        raise ValidationError(f"a {job.status.value} job cannot be rescheduled")

    target_worker_id = new_worker_id if new_worker_id is not None else job.worker_id
    if target_worker_id is None:
        raise ValidationError("job has no assigned worker")

    original_start = as_utc(job.scheduled_at)
    original_worker_id = job.worker_id
    new_start = as_utc(new_start)
    new_end = new_start + timedelta(minutes=job.duration_minutes)

    try:
        worker = lock_worker(db, target_worker_id, business_id)
        if worker.status != WorkerStatus.active:
            raise ValidationError("worker is not active")
        recheck_slot(db, worker_id=target_worker_id, start=new_start, end=new_end, job_id=job.id)

        job.scheduled_at = new_start
        job.worker_id = target_worker_id
        job.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(job)
    except Exception:
        db.rollback()
        raise

    logger.info(
        "job %s rescheduled from %s (worker %s) to %s (worker %s)",
        job.id, original_start.isoformat(), original_worker_id, new_start.isoformat(), target_worker_id,
    )
    return {
        "job": job,
        "original_scheduled_at": original_start,
        "original_worker_id": original_worker_id,
        "reason": reason,
        "message": "Job successfully rescheduled",
    }
