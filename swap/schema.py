from __future__ import annotations
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

from job.schema import JobSchema
from scheduling.schema import CompatibilitySchema
from .models import SwapStatus


class CompatibleWorkersSchema(BaseModel):
    job_id: int
    current_worker_id: Optional[int] = None
    scheduled_at: datetime
    workers: List[CompatibilitySchema] = []


# PUBLIC payload (commit a swap)
class SwapPayload(BaseModel):
    new_worker_id: int
    reason: Optional[str] = Field(None, max_length=500)
    model_config = ConfigDict(extra="forbid")


class SwapRequestSchema(BaseModel):
    id: int
    job_id: int
    original_worker_id: Optional[int] = None
    requested_worker_id: Optional[int] = None
    compatibility_score: float
    status: SwapStatus
    reason: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class SwapResponse(BaseModel):
    job: JobSchema
    swap_request: SwapRequestSchema
    original_worker_id: Optional[int] = None
    message: str
