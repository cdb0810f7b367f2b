from __future__ import annotations
import logging
from datetime import date
from typing import Optional, Iterable, List

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from .models import WeeklyAvailabilitySlot, AvailabilityException
from .schema import WeeklyAvailabilityUpsertPayload, AvailabilityExceptionCreate
from worker.models import Worker

logger = logging.getLogger(__name__)


# -------- helpers --------

def _ensure_worker_in_business(db: Session, worker_id: int, business_id: int) -> None:
    ok = db.scalar(
        select(Worker.id).where(Worker.id == worker_id, Worker.business_id == business_id)
    )
    if not ok:
        # Hide existence across businesses
        raise NotFoundError("worker not found")


# -------- weekly slots --------

def get_weekly_slots(
    db: Session,
    *,
    worker_ids: Iterable[int],
    day_of_week: Optional[int] = None,
) -> List[WeeklyAvailabilitySlot]:
    stmt = select(WeeklyAvailabilitySlot).where(WeeklyAvailabilitySlot.worker_id.in_(list(worker_ids)))
    if day_of_week is not None:
        stmt = stmt.where(WeeklyAvailabilitySlot.day_of_week == day_of_week)
    stmt = stmt.order_by(
        WeeklyAvailabilitySlot.worker_id,
        WeeklyAvailabilitySlot.day_of_week,
        WeeklyAvailabilitySlot.start_time,
    )
    return list(db.scalars(stmt))


def replace_weekly_slots(
    db: Session,
    *,
    business_id: int,
    worker_id: int,
    payload: WeeklyAvailabilityUpsertPayload,
) -> List[WeeklyAvailabilitySlot]:
    """Replace-all save of a worker's weekly pattern.

    Several slots on one day are kept side by side (split shifts); they are
    never merged.
    """
    _ensure_worker_in_business(db, worker_id, business_id)

    db.execute(delete(WeeklyAvailabilitySlot).where(WeeklyAvailabilitySlot.worker_id == worker_id))

    rows = [
        WeeklyAvailabilitySlot(
            worker_id=worker_id,
            day_of_week=it.day_of_week,
            start_time=it.start_time,
            end_time=it.end_time,
        )
        for it in payload.slots
    ]
    db.add_all(rows)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise

    for r in rows:
        db.refresh(r)
    logger.info("worker %s weekly availability saved (%d slots)", worker_id, len(rows))
    return rows


# -------- date exceptions --------

def get_exceptions(
    db: Session,
    *,
    worker_ids: Iterable[int],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[AvailabilityException]:
    stmt = select(AvailabilityException).where(AvailabilityException.worker_id.in_(list(worker_ids)))
    if date_from is not None:
        stmt = stmt.where(AvailabilityException.date >= date_from)
    if date_to is not None:
        stmt = stmt.where(AvailabilityException.date <= date_to)
    stmt = stmt.order_by(AvailabilityException.worker_id, AvailabilityException.date)
    return list(db.scalars(stmt))


def get_exception_for_business(
    db: Session, exception_id: int, *, worker_id: int, business_id: int
) -> AvailabilityException | None:
    stmt = (
        select(AvailabilityException)
        .join(Worker, Worker.id == AvailabilityException.worker_id)
        .where(
            AvailabilityException.id == exception_id,
            AvailabilityException.worker_id == worker_id,
            Worker.business_id == business_id,
        )
    )
    return db.scalars(stmt).first()


def create_exception(db: Session, dto: AvailabilityExceptionCreate) -> AvailabilityException:
    _ensure_worker_in_business(db, dto.worker_id, dto.business_id)

    row = AvailabilityException(
        worker_id=dto.worker_id,
        date=dto.date,
        is_available=dto.is_available,
        start_time=dto.start_time,
        end_time=dto.end_time,
        reason=dto.reason,
    )
    db.add(row)
    # Let IntegrityError bubble; router maps to 409 on a second exception for the same date
    db.commit()
    db.refresh(row)
    return row


def delete_exception(db: Session, exception_id: int, *, worker_id: int, business_id: int) -> bool:
    row = get_exception_for_business(db, exception_id, worker_id=worker_id, business_id=business_id)
    if not row:
        return False
    db.delete(row)
    db.commit()
    return True
