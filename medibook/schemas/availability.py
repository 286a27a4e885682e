import datetime as dt
from typing import Optional
from pydantic import field_validator

from ..models.availability import DayOfWeek
from .base import CamelModel, naive_time


class AvailabilityRequest(CamelModel):
    day_of_week: DayOfWeek
    start_time: dt.time
    end_time: dt.time

    @field_validator("day_of_week", mode="before")
    @classmethod
    def parse_day_of_week(cls, value):
        return DayOfWeek.parse(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def reject_offset_times(cls, value):
        return naive_time(value)


class AvailabilityUpdate(CamelModel):
    day_of_week: Optional[DayOfWeek] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    is_active: Optional[bool] = None

    @field_validator("day_of_week", mode="before")
    @classmethod
    def parse_day_of_week(cls, value):
        if value is None:
            return value
        return DayOfWeek.parse(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def reject_offset_times(cls, value):
        return naive_time(value)


class AvailabilityResponse(CamelModel):
    id: int
    doctor_id: int
    day_of_week: DayOfWeek
    start_time: dt.time
    end_time: dt.time
    is_active: bool
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class AvailableSlotResponse(CamelModel):
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    is_available: bool
