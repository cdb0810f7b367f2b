from __future__ import annotations
from datetime import time
from sqlalchemy import Integer, String, Time, JSON, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base

DEFAULT_WORKING_DAYS = [1, 2, 3, 4, 5]  # Mon..Fri

class Business(Base):
    __tablename__ = "businesses"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")

    # weekday ints, 0=Sun .. 6=Sat
    working_days: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=lambda: list(DEFAULT_WORKING_DAYS))
    start_time: Mapped[time] = mapped_column(Time, nullable=False, default=time(8, 0))
    end_time:   Mapped[time] = mapped_column(Time, nullable=False, default=time(18, 0))
    break_start: Mapped[time | None] = mapped_column(Time, nullable=True)
    break_end:   Mapped[time | None] = mapped_column(Time, nullable=True)

    minimum_notice_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=24)
    max_advance_booking_days: Mapped[int] = mapped_column(Integer, nullable=False, default=90)

    # relationships
    workers = relationship("Worker", back_populates="business", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_business_hours"),
        CheckConstraint("minimum_notice_hours >= 0", name="ck_business_notice"),
        CheckConstraint("max_advance_booking_days >= 1", name="ck_business_advance"),
    )
