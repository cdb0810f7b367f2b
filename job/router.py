from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from authz.deps import require_business

from .schema import JobReschedulePayload, JobRescheduleResponse
from . import service

job_router = APIRouter(prefix="/jobs", tags=["Jobs"])


# Commit a manual reschedule (re-validated inside the write transaction)
@job_router.post("/{job_id}/reschedule", response_model=JobRescheduleResponse)
def reschedule_job(
    job_id: int,
    payload: JobReschedulePayload,
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    return service.reschedule_job(
        db,
        business_id=business_id,
        job_id=job_id,
        new_start=payload.new_scheduled_at,
        new_worker_id=payload.new_worker_id,
        reason=payload.reason,
    )
