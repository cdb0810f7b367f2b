"""create scheduling tables

Revision ID: 3c9e2a7d41b5
Revises:
Create Date: 2026-10-17 09:12:44.318207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c9e2a7d41b5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

worker_status = sa.Enum("active", "inactive", name="worker_status")
job_status = sa.Enum(
    "scheduled", "in_progress", "completed", "cancelled", "rescheduled", name="job_status"
)
swap_status = sa.Enum("pending", "auto_approved", "rejected", name="swap_status")


def upgrade():
    op.create_table(
        "businesses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="UTC"),
        sa.Column("working_days", sa.JSON(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("break_start", sa.Time(), nullable=True),
        sa.Column("break_end", sa.Time(), nullable=True),
        sa.Column("minimum_notice_hours", sa.Integer(), nullable=False, server_default="24"),
        sa.Column("max_advance_booking_days", sa.Integer(), nullable=False, server_default="90"),
        sa.CheckConstraint("start_time < end_time", name="ck_business_hours"),
        sa.CheckConstraint("minimum_notice_hours >= 0", name="ck_business_notice"),
        sa.CheckConstraint("max_advance_booking_days >= 1", name="ck_business_advance"),
    )

    op.create_table(
        "workers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", worker_status, nullable=False, server_default="active"),
        sa.Column("skills", sa.JSON(), nullable=False),
    )
    op.create_index("ix_workers_business_id", "workers", ["business_id"])
    op.create_index("ix_workers_business_status", "workers", ["business_id", "status"])

    op.create_table(
        "worker_weekly_availability",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("worker_id", sa.Integer(), sa.ForeignKey("workers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_weekly_avail_day"),
        sa.CheckConstraint("start_time < end_time", name="ck_weekly_avail_order"),
        sa.UniqueConstraint(
            "worker_id", "day_of_week", "start_time", "end_time",
            name="unique_weekly_availability_slot",
        ),
    )
    op.create_index("ix_worker_weekly_availability_worker_id", "worker_weekly_availability", ["worker_id"])
    op.create_index("ix_weekly_avail_worker_day", "worker_weekly_availability", ["worker_id", "day_of_week"])

    op.create_table(
        "worker_availability_exceptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("worker_id", sa.Integer(), sa.ForeignKey("workers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.UniqueConstraint("worker_id", "date", name="unique_availability_exception_date"),
    )
    op.create_index(
        "ix_worker_availability_exceptions_worker_id", "worker_availability_exceptions", ["worker_id"]
    )

    op.create_table(
        "jobs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("worker_id", sa.Integer(), sa.ForeignKey("workers.id", ondelete="SET NULL"), nullable=True),
        sa.Column("client_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("status", job_status, nullable=False, server_default="scheduled"),
        sa.Column("required_skills", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "duration_minutes > 0 AND duration_minutes <= 1440", name="ck_jobs_duration"
        ),
    )
    op.create_index("ix_jobs_business_id", "jobs", ["business_id"])
    op.create_index("ix_jobs_worker_id", "jobs", ["worker_id"])
    op.create_index("ix_jobs_worker_start", "jobs", ["worker_id", "scheduled_at"])

    op.create_table(
        "worker_swap_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("job_id", sa.Integer(), sa.ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("original_worker_id", sa.Integer(), sa.ForeignKey("workers.id", ondelete="SET NULL"), nullable=True),
        sa.Column("requested_worker_id", sa.Integer(), sa.ForeignKey("workers.id", ondelete="SET NULL"), nullable=True),
        sa.Column("compatibility_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", swap_status, nullable=False, server_default="pending"),
        sa.Column("reason", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_worker_swap_requests_job_id", "worker_swap_requests", ["job_id"])


def downgrade():
    op.drop_index("ix_worker_swap_requests_job_id", table_name="worker_swap_requests")
    op.drop_table("worker_swap_requests")

    op.drop_index("ix_jobs_worker_start", table_name="jobs")
    op.drop_index("ix_jobs_worker_id", table_name="jobs")
    op.drop_index("ix_jobs_business_id", table_name="jobs")
    op.drop_table("jobs")

    op.drop_index("ix_worker_availability_exceptions_worker_id", table_name="worker_availability_exceptions")
    op.drop_table("worker_availability_exceptions")

    op.drop_index("ix_weekly_avail_worker_day", table_name="worker_weekly_availability")
    op.drop_index("ix_worker_weekly_availability_worker_id", table_name="worker_weekly_availability")
    op.drop_table("worker_weekly_availability")

    op.drop_index("ix_workers_business_status", table_name="workers")
    op.drop_index("ix_workers_business_id", table_name="workers")
    op.drop_table("workers")

    op.drop_table("businesses")

    bind = op.get_bind()
    swap_status.drop(bind, checkfirst=True)
    job_status.drop(bind, checkfirst=True)
    worker_status.drop(bind, checkfirst=True)
