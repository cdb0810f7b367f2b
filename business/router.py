from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from authz.deps import require_business

from .schema import BusinessHoursSchema, BusinessHoursUpdate
from . import service

business_router = APIRouter(prefix="/business", tags=["Business"])


@business_router.get("/hours", response_model=BusinessHoursSchema)
def get_business_hours(
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    return service.get_business_or_404(db, business_id)


@business_router.put("/hours", response_model=BusinessHoursSchema)
def save_business_hours(
    payload: BusinessHoursUpdate,
    db: Session = Depends(get_db),
    business_id: int = Depends(require_business),
    ):
    return service.update_business_hours(db, business_id, payload)
