from __future__ import annotations
import datetime as dt
from datetime import time
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ---------- DB → API (read) ----------
class WeeklySlotSchema(BaseModel):
    id: int
    worker_id: int
    day_of_week: int
    start_time: time
    end_time: time

    model_config = ConfigDict(from_attributes=True)


class AvailabilityExceptionSchema(BaseModel):
    id: int
    worker_id: int
    date: dt.date
    is_available: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# ---------- Client → API (save weekly availability) ----------
class WeeklySlotPayload(BaseModel):
    day_of_week: int = Field(ge=0, le=6, description="0=Sun .. 6=Sat")
    start_time: time
    end_time: time

    model_config = ConfigDict(extra="forbid")

    @field_validator("end_time")
    @classmethod
    def ends_after_start(cls, v: time, info):
        st = info.data.get("start_time")
        if st and v <= st:
            raise ValueError("end time must be after start time")
        return v


class WeeklyAvailabilityUpsertPayload(BaseModel):
    slots: List[WeeklySlotPayload]
    model_config = ConfigDict(extra="forbid")


# ---------- Client → API (date exception) ----------
class AvailabilityExceptionCreatePayload(BaseModel):
    date: dt.date
    is_available: bool = False
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = Field(None, max_length=255)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_hours(self):
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start time and end time must be given together")
        if self.start_time is not None and not self.is_available:
            raise ValueError("hours only apply to an available exception")
        if self.start_time is not None and self.end_time <= self.start_time:
            raise ValueError("end time must be after start time")
        return self


# ---------- Internal DTO (service layer) ----------
class AvailabilityExceptionCreate(AvailabilityExceptionCreatePayload):
    business_id: int
    worker_id: int

    model_config = ConfigDict(extra="ignore")
