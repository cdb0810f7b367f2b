from __future__ import annotations
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing_extensions import Literal

from job.schema import JobRef
from .intervals import as_utc


# -------- availability check --------

class AvailabilityCheckPayload(BaseModel):
    worker_id: int
    start: datetime = Field(..., description="ISO8601, timezone-aware")
    end: datetime = Field(..., description="ISO8601, timezone-aware")
    exclude_job_id: Optional[int] = None
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_range(self):
        # naive values are taken as UTC, so mixed inputs still compare
        if as_utc(self.end) <= as_utc(self.start):
            raise ValueError("end must be after start")
        return self


class AvailabilityVerdictSchema(BaseModel):
    available: bool
    reason: str
    conflicts: List[JobRef] = []
    determinate: bool = True
    model_config = ConfigDict(from_attributes=True)


# -------- slot search --------

class SlotSearchPayload(BaseModel):
    preferred: Optional[datetime] = None
    search_days: Optional[int] = Field(None, ge=1)
    candidate_worker_ids: Optional[List[int]] = None
    model_config = ConfigDict(extra="forbid")


class CandidateSchema(BaseModel):
    worker_id: int
    worker_name: str
    start: datetime
    end: datetime
    score: float
    utilization: float
    is_suggested: bool = False
    model_config = ConfigDict(from_attributes=True)


class SlotSearchResultSchema(BaseModel):
    slots: List[CandidateSchema] = []
    nearest_available_slot: Optional[CandidateSchema] = None
    no_availability_reason: Optional[str] = None
    window_start: datetime
    window_end: datetime
    truncated: bool = False
    availability_unknown: bool = False
    model_config = ConfigDict(from_attributes=True)


# -------- compatibility / utilization --------

EfficiencyRating = Literal["optimal", "good", "busy", "overloaded"]


class CompatibilitySchema(BaseModel):
    worker_id: int
    worker_name: str
    score: float
    available: bool
    reason: str
    skill_match: float
    utilization: float
    efficiency_rating: EfficiencyRating
    model_config = ConfigDict(from_attributes=True)


class UtilizationSchema(BaseModel):
    worker_id: int
    window_start: datetime
    window_end: datetime
    utilization: float
    efficiency_rating: EfficiencyRating


# -------- reschedule options --------

class RescheduleOptionsPayload(BaseModel):
    preferred: Optional[datetime] = None
    search_days: Optional[int] = Field(None, ge=1)
    include_other_workers: bool = False
    model_config = ConfigDict(extra="forbid")


class RescheduleSlotSchema(CandidateSchema):
    requires_worker_change: bool


class RescheduleSummarySchema(BaseModel):
    total_suggestions: int
    suggested_count: int
    has_nearest_slot: bool


class RescheduleOptionsSchema(BaseModel):
    job_id: int
    current_worker_id: Optional[int] = None
    current_scheduled_at: datetime
    searched_days: int
    generated_at: datetime
    window_start: datetime
    window_end: datetime
    slots: List[RescheduleSlotSchema] = []
    nearest_available_slot: Optional[RescheduleSlotSchema] = None
    no_availability_reason: Optional[str] = None
    truncated: bool = False
    availability_unknown: bool = False
    summary: RescheduleSummarySchema
    model_config = ConfigDict(from_attributes=True)


# -------- business-wide views --------

class RosterCheckPayload(BaseModel):
    start: datetime = Field(..., description="ISO8601, timezone-aware")
    end: datetime = Field(..., description="ISO8601, timezone-aware")
    exclude_job_id: Optional[int] = None
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_range(self):
        if as_utc(self.end) <= as_utc(self.start):
            raise ValueError("end must be after start")
        return self


class WorkerAvailabilitySchema(BaseModel):
    worker_id: int
    worker_name: str
    available: bool
    reason: str
    determinate: bool = True
    conflicting_jobs: int = 0
    utilization: float
    efficiency_rating: EfficiencyRating
    model_config = ConfigDict(from_attributes=True)


class NextAvailablePayload(BaseModel):
    after: Optional[datetime] = None
    search_days: Optional[int] = Field(None, ge=1)
    model_config = ConfigDict(extra="forbid")


class NextAvailableSchema(BaseModel):
    worker_id: int
    worker_name: str
    slot: Optional[CandidateSchema] = None
    no_availability_reason: Optional[str] = None
    availability_unknown: bool = False
    model_config = ConfigDict(from_attributes=True)
