from __future__ import annotations
import datetime as dt
from datetime import time
from sqlalchemy import ForeignKey, Time, Date, Integer, Boolean, String, UniqueConstraint, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base

class WeeklyAvailabilitySlot(Base):
    __tablename__ = "worker_weekly_availability"

    id: Mapped[int] = mapped_column(primary_key=True)
    worker_id: Mapped[int] = mapped_column(
        ForeignKey("workers.id", ondelete="CASCADE"), index=True
    )

    # 0=Sunday .. 6=Saturday
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)

    start_time: Mapped[time] = mapped_column(Time(timezone=False), nullable=False)
    end_time:   Mapped[time] = mapped_column(Time(timezone=False), nullable=False)

    worker = relationship("Worker", back_populates="weekly_slots")

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_weekly_avail_day"),
        CheckConstraint("start_time < end_time", name="ck_weekly_avail_order"),
        UniqueConstraint(
            "worker_id", "day_of_week", "start_time", "end_time",
            name="unique_weekly_availability_slot"
        ),
        Index("ix_weekly_avail_worker_day", "worker_id", "day_of_week"),
    )


class AvailabilityException(Base):
    """One-off override for a single local calendar date.

    Supersedes the weekly pattern for that date. ``is_available`` with no
    times means available all day; times are only meaningful when available.
    """
    __tablename__ = "worker_availability_exceptions"

    id: Mapped[int] = mapped_column(primary_key=True)
    worker_id: Mapped[int] = mapped_column(
        ForeignKey("workers.id", ondelete="CASCADE"), index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    start_time: Mapped[time | None] = mapped_column(Time(timezone=False), nullable=True)
    end_time:   Mapped[time | None] = mapped_column(Time(timezone=False), nullable=True)
    reason:     Mapped[str | None] = mapped_column(String(255), nullable=True)

    worker = relationship("Worker", back_populates="exceptions")

    __table_args__ = (
        UniqueConstraint("worker_id", "date", name="unique_availability_exception_date"),
    )
