# backend/tutorbook/schemas/booking.py
"""
Booking schemas.

Dates and times are wall-clock values in the platform timezone; timestamps
are UTC.
"""

from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import Field, field_validator

from ..core.enums import BookingStatus
from ._strict_base import StrictModel, StrictRequestModel


class BookingCreate(StrictRequestModel):
    """Reserve a teacher's open slot for a student."""

    student_id: str = Field(..., description="Student the class is booked for")
    teacher_id: str = Field(..., description="Teacher to book")
    booking_date: date = Field(..., description="Date of the class")
    start_time: time = Field(..., description="Start time, minute granularity")
    lesson_ref: str = Field(..., min_length=1, max_length=255)
    student_level: str = Field(..., min_length=1, max_length=100)

    @field_validator("lesson_ref", "student_level")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()


class EnterClassroomRequest(StrictRequestModel):
    role: Literal["teacher", "student"]


class AbsenceRequest(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=500)


class StatusCorrectionRequest(StrictRequestModel):
    status: Literal["completed", "absent"]


class BookingResponse(StrictModel):
    id: str
    student_id: str
    teacher_id: str
    booking_date: date
    start_time: time
    lesson_ref: str
    student_level: str
    classroom_id: str
    status: BookingStatus
    teacher_entered: bool
    student_entered: bool
    teacher_entered_at: Optional[datetime] = None
    student_entered_at: Optional[datetime] = None
    absent_checked: bool
    class_completed: bool
    finished_at: Optional[datetime] = None
    late_minutes: int
    absent_marked_at: Optional[datetime] = None
    absent_type: Optional[str] = None
    absent_reason: Optional[str] = None
    cancellation_time: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancellation_rejected: bool
    needs_audit: bool
    audit_note: Optional[str] = None
    created_at: Optional[datetime] = None
