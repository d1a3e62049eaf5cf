# backend/tutorbook/schemas/slot.py
"""Availability slot schemas."""

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import Field, field_validator

from ._strict_base import StrictModel, StrictRequestModel


class SlotKeyIn(StrictRequestModel):
    slot_date: date
    start_time: time

    @field_validator("start_time")
    @classmethod
    def _minute_granularity(cls, value: time) -> time:
        return value.replace(second=0, microsecond=0)


class PublishSlotsRequest(StrictRequestModel):
    slots: List[SlotKeyIn]


class WithdrawSlotsRequest(StrictRequestModel):
    slots: List[SlotKeyIn] = Field(default_factory=list)


class SlotResponse(StrictModel):
    id: str
    teacher_id: str
    slot_date: date
    start_time: time
    available: bool
    created_at: Optional[datetime] = None


class PublishSlotsResponse(StrictModel):
    teacher_id: str
    range_start: date
    range_end: date
    published: int
    removed: int
    kept_unavailable: int


class WithdrawSlotsResponse(StrictModel):
    deleted: int


class AvailableTeacherResponse(StrictModel):
    id: str
    name: str
