from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from job.models import MOVABLE_STATUSES
from job import service as job_service
from scheduling.compatibility import CompatibilityAssessment, CompatibilityScorer
from scheduling.intervals import as_utc
from scheduling.store import SchedulingStore
from worker.models import WorkerStatus
from worker import service as worker_service
from .models import SwapRequest, SwapStatus

logger = logging.getLogger(__name__)


def list_compatible_workers(
    db: Session,
    *,
    business_id: int,
    job_id: int,
    include_unavailable: bool = False,
) -> dict:
    """Every other active worker of the business scored for the job, best first."""
    job = job_service.get_job_for_business(db, job_id, business_id)
    if not job:
        raise NotFoundError("job not found")
    if job.worker_id is None:
        raise ValidationError("job has no assigned worker")

    scorer = CompatibilityScorer(SchedulingStore(db))
    assessments: list[CompatibilityAssessment] = []
    for w in worker_service.get_workers(db, business_id=business_id, status=WorkerStatus.active):
        if w.id == job.worker_id:
            continue
        a = scorer.assess(job.id, job.worker_id, w.id, business_id=business_id)
        if a.available or include_unavailable:
            assessments.append(a)

    # available first, then score, then the lighter load, then id for determinism
    assessments.sort(key=lambda a: (not a.available, -a.score, a.utilization, a.worker_id))
    return {
        "job_id": job.id,
        "current_worker_id": job.worker_id,
        "scheduled_at": as_utc(job.scheduled_at),
        "workers": assessments,
    }


def execute_swap(
    db: Session,
    *,
    business_id: int,
    job_id: int,
    new_worker_id: int,
    reason: Optional[str] = None,
) -> dict:
    """
    Hand a job to another worker in one transaction:
    - lock the new worker and re-check the job's interval for them
    - record an auto-approved SwapRequest with the compatibility score
    - move the job
    """
    job = job_service.get_job_for_business(db, job_id, business_id)
    if not job:
        raise NotFoundError("job not found")
    if job.status not in MOVABLE_STATUSES:
        raise ValidationError(f"a {job.status.value} job cannot be swapped")
    if job.worker_id is None:
        raise ValidationError("job has no assigned worker")
    if new_worker_id == job.worker_id:
        raise ValidationError("new worker must differ from the current worker")

    original_worker_id = job.worker_id
    start, end = as_utc(job.scheduled_at), job.ends_at

    try:
        worker = job_service.lock_worker(db, new_worker_id, business_id)
        if worker.status != WorkerStatus.active:
            raise ValidationError("worker is not active")
        job_service.recheck_slot(db, worker_id=new_worker_id, start=start, end=end, job_id=job.id)
        score = CompatibilityScorer(SchedulingStore(db)).score(job.id, original_worker_id, new_worker_id)

        swap = SwapRequest(
            job_id=job.id,
            original_worker_id=original_worker_id,
            requested_worker_id=new_worker_id,
            compatibility_score=score,
            status=SwapStatus.auto_approved,
            reason=reason,
        )
        db.add(swap)
        job.worker_id = new_worker_id
        job.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(job)
        db.refresh(swap)
    except Exception:
        db.rollback()
        raise

    logger.info(
        "job %s swapped from worker %s to worker %s (score %.1f)",
        job.id, original_worker_id, new_worker_id, score,
    )
    return {
        "job": job,
        "swap_request": swap,
        "original_worker_id": original_worker_id,
        "message": "Worker successfully swapped",
    }
