from __future__ import annotations
from enum import Enum
from sqlalchemy import String, ForeignKey, JSON, Enum as SAEnum, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base

class WorkerStatus(str, Enum):
    active = "active"
    inactive = "inactive"

class Worker(Base):
    __tablename__ = "workers"

    id: Mapped[int] = mapped_column(primary_key=True)
    business_id: Mapped[int] = mapped_column(ForeignKey("businesses.id", ondelete="CASCADE"), index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[WorkerStatus] = mapped_column(
        SAEnum(WorkerStatus, name="worker_status"), nullable=False, default=WorkerStatus.active
    )
    skills: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # relationships
    business = relationship("Business", back_populates="workers")
    weekly_slots = relationship("WeeklyAvailabilitySlot", back_populates="worker", cascade="all, delete-orphan")
    exceptions = relationship("AvailabilityException", back_populates="worker", cascade="all, delete-orphan")

Index("ix_workers_business_status", Worker.business_id, Worker.status)
