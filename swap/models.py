from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import DateTime, Float, String, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base

class SwapStatus(str, Enum):
    pending = "pending"
    auto_approved = "auto_approved"
    rejected = "rejected"

class SwapRequest(Base):
    __tablename__ = "worker_swap_requests"

    id: Mapped[int] = mapped_column(primary_key=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), index=True)
    original_worker_id: Mapped[int | None] = mapped_column(
        ForeignKey("workers.id", ondelete="SET NULL"), nullable=True
    )
    requested_worker_id: Mapped[int | None] = mapped_column(
        ForeignKey("workers.id", ondelete="SET NULL"), nullable=True
    )
    compatibility_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    status: Mapped[SwapStatus] = mapped_column(
        SAEnum(SwapStatus, name="swap_status"), nullable=False, default=SwapStatus.pending
    )
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # relationships
    job = relationship("Job")
