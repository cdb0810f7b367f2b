from __future__ import annotations
from datetime import date
from typing import Optional, Dict, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.database import get_db
from authz.deps import require_business

from .schema import (
    WeeklySlotSchema,
    WeeklyAvailabilityUpsertPayload,
    AvailabilityExceptionSchema,
    AvailabilityExceptionCreatePayload,
    AvailabilityExceptionCreate,
)
from . import service
from worker.service import get_worker_for_business

availability_router = APIRouter(prefix="/workers", tags=["Worker Availability"])

def _ensure_worker_in_business(db: Session, worker_id: int, business_id: int) -> None:
    if not get_worker_for_business(db, worker_id, business_id):
        raise HTTPException(status_code=404, detail="worker not found")


@availability_router.get("/{worker_id}/availability", response_model=list[WeeklySlotSchema])
def list_weekly_availability(
    worker_id: int,
    day_of_week: Optional[int] = Query(None, ge=0, le=6),
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    _ensure_worker_in_business(db, worker_id, business_id)
    return service.get_weekly_slots(db, worker_ids=[worker_id], day_of_week=day_of_week)


@availability_router.put("/{worker_id}/availability", response_model=list[WeeklySlotSchema])
def save_weekly_availability(
    worker_id: int,
    payload: WeeklyAvailabilityUpsertPayload,
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    _ensure_worker_in_business(db, worker_id, business_id)
    try:
        return service.replace_weekly_slots(db, business_id=business_id, worker_id=worker_id, payload=payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Weekly availability contains duplicate slots")


@availability_router.get("/{worker_id}/availability/exceptions", response_model=list[AvailabilityExceptionSchema])
def list_availability_exceptions(
    worker_id: int,
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    _ensure_worker_in_business(db, worker_id, business_id)
    return service.get_exceptions(db, worker_ids=[worker_id], date_from=date_from, date_to=date_to)


@availability_router.post(
    "/{worker_id}/availability/exceptions",
    response_model=AvailabilityExceptionSchema,
    status_code=status.HTTP_201_CREATED,
)
def create_availability_exception(
    worker_id: int,
    payload: AvailabilityExceptionCreatePayload,
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    dto = AvailabilityExceptionCreate(business_id=business_id, worker_id=worker_id, **payload.model_dump())
    try:
        return service.create_exception(db, dto)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="an exception already exists for this date")


@availability_router.delete("/{worker_id}/availability/exceptions/{exception_id}")
def delete_availability_exception(
    worker_id: int,
    exception_id: int,
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ) -> Dict[str, Any]:
    ok = service.delete_exception(db, exception_id, worker_id=worker_id, business_id=business_id)
    if not ok:
        raise HTTPException(status_code=404, detail="exception not found")
    return {"message": "availability exception deleted"}
