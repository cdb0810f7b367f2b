from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.database import get_db
from authz.deps import require_business

from .schema import CompatibleWorkersSchema, SwapPayload, SwapResponse
from . import service

swap_router = APIRouter(prefix="/jobs", tags=["Worker Swap"])


# Other active workers scored for this job, best first
@swap_router.get("/{job_id}/swap-worker", response_model=CompatibleWorkersSchema)
def list_swap_candidates(
    job_id: int,
    include_unavailable: bool = Query(False),
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    return service.list_compatible_workers(
        db, business_id=business_id, job_id=job_id, include_unavailable=include_unavailable
    )


# Commit a swap (re-validated inside the write transaction)
@swap_router.post("/{job_id}/swap-worker", response_model=SwapResponse)
def swap_worker(
    job_id: int,
    payload: SwapPayload,
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    return service.execute_swap(
        db,
        business_id=business_id,
        job_id=job_id,
        new_worker_id=payload.new_worker_id,
        reason=payload.reason,
    )
