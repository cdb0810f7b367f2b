from __future__ import annotations
import logging
from typing import Optional

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from .models import Business
from .schema import BusinessHoursUpdate

logger = logging.getLogger(__name__)


def get_business(db: Session, business_id: int) -> Optional[Business]:
    return db.get(Business, business_id)


def get_business_or_404(db: Session, business_id: int) -> Business:
    business = db.get(Business, business_id)
    if not business:
        raise NotFoundError("business not found")
    return business


def update_business_hours(db: Session, business_id: int, patch: BusinessHoursUpdate) -> Business:
    business = get_business_or_404(db, business_id)

    data = patch.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(business, k, v)

    # Basic guards on the merged row
    if business.start_time >= business.end_time:
        db.rollback()
        raise ValidationError("start time must be before end time")
    if (business.break_start is None) != (business.break_end is None):
        db.rollback()
        raise ValidationError("break start and break end must be given together")

    db.commit()
    db.refresh(business)
    logger.info("business %s hours updated: %s", business.id, ", ".join(sorted(data)))
    return business
