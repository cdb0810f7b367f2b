from __future__ import annotations
from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.database import get_db
from authz.deps import require_business

from .schema import (
    AvailabilityCheckPayload,
    AvailabilityVerdictSchema,
    SlotSearchPayload,
    SlotSearchResultSchema,
    CompatibilitySchema,
    UtilizationSchema,
    RescheduleOptionsPayload,
    RescheduleOptionsSchema,
    RosterCheckPayload,
    WorkerAvailabilitySchema,
    NextAvailablePayload,
    NextAvailableSchema,
)
from . import service

scheduling_router = APIRouter(tags=["Scheduling"])


# Can this worker take [start, end)?
@scheduling_router.post("/availability/check", response_model=AvailabilityVerdictSchema)
def check_availability(
    payload: AvailabilityCheckPayload,
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    verdict = service.resolve_availability(
        db,
        business_id=business_id,
        worker_id=payload.worker_id,
        start=payload.start,
        end=payload.end,
        exclude_job_id=payload.exclude_job_id,
    )
    return AvailabilityVerdictSchema.model_validate(verdict)


# Ranked replacement slots for a job (empty list + reason when none)
@scheduling_router.post("/jobs/{job_id}/slot-search", response_model=SlotSearchResultSchema)
def search_slots(
    job_id: int,
    payload: SlotSearchPayload,
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    return service.search_reschedule_slots(
        db,
        business_id=business_id,
        job_id=job_id,
        preferred=payload.preferred,
        search_days=payload.search_days,
        candidate_worker_ids=payload.candidate_worker_ids,
    )


@scheduling_router.get(
    "/jobs/{job_id}/compatibility/{candidate_worker_id}",
    response_model=CompatibilitySchema,
)
def get_compatibility(
    job_id: int,
    candidate_worker_id: int,
    original_worker_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    return service.score_compatibility(
        db,
        business_id=business_id,
        job_id=job_id,
        candidate_worker_id=candidate_worker_id,
        original_worker_id=original_worker_id,
    )


# Defaults to the current week in the business timezone
@scheduling_router.get("/workers/{worker_id}/utilization", response_model=UtilizationSchema)
def get_utilization(
    worker_id: int,
    window_start: Optional[datetime] = Query(None),
    window_end: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    return service.estimate_utilization(
        db,
        business_id=business_id,
        worker_id=worker_id,
        window_start=window_start,
        window_end=window_end,
    )


@scheduling_router.post("/jobs/{job_id}/reschedule-options", response_model=RescheduleOptionsSchema)
def reschedule_options(
    job_id: int,
    payload: RescheduleOptionsPayload,
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    options = service.generate_reschedule_options(
        db,
        business_id=business_id,
        job_id=job_id,
        preferred=payload.preferred,
        search_days=payload.search_days,
        include_other_workers=payload.include_other_workers,
    )
    # summary is a property, so validate from attributes rather than asdict()
    return RescheduleOptionsSchema.model_validate(options)


# Every active worker against one interval, with load
@scheduling_router.post("/availability/check-all", response_model=List[WorkerAvailabilitySchema])
def check_all_workers(
    payload: RosterCheckPayload,
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    rows = service.check_all_workers(
        db,
        business_id=business_id,
        start=payload.start,
        end=payload.end,
        exclude_job_id=payload.exclude_job_id,
    )
    return [WorkerAvailabilitySchema.model_validate(r) for r in rows]


# First free slot of each active worker for this job
@scheduling_router.post("/jobs/{job_id}/next-available", response_model=List[NextAvailableSchema])
def next_available(
    job_id: int,
    payload: NextAvailablePayload,
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    rows = service.next_available_slots(
        db,
        business_id=business_id,
        job_id=job_id,
        after=payload.after,
        search_days=payload.search_days,
    )
    return [NextAvailableSchema.model_validate(r) for r in rows]
