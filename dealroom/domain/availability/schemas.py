"""Availability domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...config import DEFAULT_TIMEZONE
from ...shared.timeutils import ensure_naive


class TimeWindow(BaseModel):
    start_time: dt.time
    end_time: dt.time

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_wall_clock(cls, v):
        return ensure_naive(v)

    @model_validator(mode="after")
    def check_order(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SlotEntry(TimeWindow):
    """A single slot to publish"""

    date: dt.date
    timezone: Optional[str] = None
    notes: Optional[str] = None


class SlotCreateRequest(BaseModel):
    resource_id: str
    slots: list[SlotEntry] = Field(min_length=1)


class BulkSlotCreateRequest(BaseModel):
    """Cross product of dates and daily time windows"""

    resource_id: str
    dates: list[dt.date] = Field(min_length=1)
    time_slots: list[TimeWindow] = Field(min_length=1)
    timezone: str = DEFAULT_TIMEZONE
    notes: Optional[str] = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        if not v or not v.strip():
            raise ValueError("timezone must not be empty")
        return v.strip()


class DefaultAvailabilityRequest(BaseModel):
    resource_id: str
    timezone: str = DEFAULT_TIMEZONE


class SlotResponse(BaseModel):
    id: str
    resource_id: str
    owner_id: str
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    timezone: str
    notes: Optional[str] = None
    claimed: bool
    claimed_by: Optional[str] = None
    meeting_id: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True
