from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from sqlalchemy import DateTime, Integer, String, ForeignKey, JSON, Enum as SAEnum, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base
from scheduling.intervals import as_utc

# Upper bound on a single job; also the look-back used when querying bookings that
# started before a window but may still run into it.
MAX_JOB_DURATION_MINUTES = 24 * 60

class JobStatus(str, Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    rescheduled = "rescheduled"

# statuses that never block a worker's time
NON_BLOCKING_STATUSES = (JobStatus.cancelled, JobStatus.completed)
# statuses a reschedule/swap commit may move
MOVABLE_STATUSES = (JobStatus.scheduled, JobStatus.rescheduled)

class Job(Base):
    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(primary_key=True)

    business_id: Mapped[int] = mapped_column(
        ForeignKey("businesses.id", ondelete="CASCADE"), index=True
    )
    worker_id: Mapped[int | None] = mapped_column(
        ForeignKey("workers.id", ondelete="SET NULL"), index=True, nullable=True
    )
    # clients live in the CRUD layer
    client_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)

    status: Mapped[JobStatus] = mapped_column(
        SAEnum(JobStatus, name="job_status"), nullable=False, default=JobStatus.scheduled
    )
    required_skills: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # relationships
    worker = relationship("Worker")

    __table_args__ = (
        CheckConstraint(
            f"duration_minutes > 0 AND duration_minutes <= {MAX_JOB_DURATION_MINUTES}",
            name="ck_jobs_duration",
        ),
    )

    @property
    def ends_at(self) -> datetime:
        return as_utc(self.scheduled_at) + timedelta(minutes=self.duration_minutes)

Index("ix_jobs_worker_start", Job.worker_id, Job.scheduled_at)
