from __future__ import annotations
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

from .models import JobStatus


class JobRef(BaseModel):
    id: int
    title: str
    model_config = ConfigDict(from_attributes=True)


class JobSchema(BaseModel):
    id: int
    business_id: int
    worker_id: Optional[int] = None
    client_id: Optional[int] = None
    title: str
    scheduled_at: datetime
    duration_minutes: int
    status: JobStatus
    required_skills: List[str] = []
    model_config = ConfigDict(from_attributes=True)


# PUBLIC payload (commit a manual reschedule)
class JobReschedulePayload(BaseModel):
    new_scheduled_at: datetime = Field(..., description="ISO8601, timezone-aware")
    new_worker_id: Optional[int] = None
    reason: Optional[str] = Field(None, max_length=500)
    model_config = ConfigDict(extra="forbid")


class JobRescheduleResponse(BaseModel):
    job: JobSchema
    original_scheduled_at: datetime
    original_worker_id: Optional[int] = None
    reason: Optional[str] = None
    message: str
