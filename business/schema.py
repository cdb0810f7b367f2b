from __future__ import annotations
from datetime import time
from typing import Optional, List
import pytz
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

WEEKDAY_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")


class BusinessHoursSchema(BaseModel):
    id: int
    name: str
    timezone: str
    working_days: List[int]
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    minimum_notice_hours: int
    max_advance_booking_days: int

    model_config = ConfigDict(from_attributes=True)


# Client → API (save hours)
class BusinessHoursUpdate(BaseModel):
    timezone: Optional[str] = None
    working_days: Optional[List[int]] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    minimum_notice_hours: Optional[int] = Field(None, ge=0)
    max_advance_booking_days: Optional[int] = Field(None, ge=1)

    model_config = ConfigDict(extra="forbid")

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v: Optional[str]):
        if v is None:
            return v
        try:
            pytz.timezone(v)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"unknown timezone: {v}")
        return v

    # day names ("monday") are accepted and stored as 0=Sun .. 6=Sat
    @field_validator("working_days", mode="before")
    @classmethod
    def weekday_names(cls, v):
        if not isinstance(v, list):
            return v
        out = []
        for d in v:
            if isinstance(d, str) and d.strip().lower() in WEEKDAY_NAMES:
                d = WEEKDAY_NAMES.index(d.strip().lower())
            out.append(d)
        return out

    @field_validator("working_days")
    @classmethod
    def valid_weekdays(cls, v: Optional[List[int]]):
        if v is None:
            return v
        if any(d < 0 or d > 6 for d in v):
            raise ValueError("working days must be between 0 and 6")
        return sorted(set(v))

    @model_validator(mode="after")
    def validate_times(self):
        if self.start_time is not None and self.end_time is not None:
            if self.start_time >= self.end_time:
                raise ValueError("start time must be before end time")
        if (self.break_start is None) != (self.break_end is None):
            raise ValueError("break start and break end must be given together")
        if self.break_start is not None and self.break_end is not None:
            if self.break_start >= self.break_end:
                raise ValueError("break start must be before break end")
        return self
