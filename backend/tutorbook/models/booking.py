# backend/tutorbook/models/booking.py
"""
Booking model.

Represents a reserved one-to-one session between a teacher and a student.
The booking is the system of record for the session: attendance, absence,
cancellation and audit metadata all live on the row, and payroll is derived
from it after the fact.
"""

from datetime import date, datetime, time
import logging
from typing import cast

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import BookingStatus
from ..core.timezone_utils import scheduled_start_utc
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class Booking(Base):
    """
    Session booking between a student and a teacher.

    Status moves ``pending -> completed | absent | cancelled``; the three
    outcomes are terminal. ``confirmed`` only appears on legacy rows and is
    treated like ``pending``.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    student_id = Column(String(26), ForeignKey("students.id"), nullable=False, index=True)
    teacher_id = Column(String(26), ForeignKey("teachers.id"), nullable=False, index=True)

    # Calendar fields, platform timezone
    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)

    lesson_ref = Column(String(255), nullable=False)
    student_level = Column(String(100), nullable=False)
    classroom_id = Column(String(120), nullable=False, unique=True, index=True)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)

    # Attendance
    teacher_entered = Column(Boolean, nullable=False, default=False)
    student_entered = Column(Boolean, nullable=False, default=False)
    teacher_entered_at = Column(UTCDateTime(), nullable=True)
    student_entered_at = Column(UTCDateTime(), nullable=True)
    absent_checked = Column(Boolean, nullable=False, default=False)
    class_completed = Column(Boolean, nullable=False, default=False)
    finished_at = Column(UTCDateTime(), nullable=True)
    late_minutes = Column(Integer, nullable=False, default=0)

    # Absence
    absent_marked_at = Column(UTCDateTime(), nullable=True)
    absent_type = Column(String(20), nullable=True)
    absent_reason = Column(Text, nullable=True)

    # Cancellation
    cancellation_time = Column(UTCDateTime(), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancellation_rejected = Column(Boolean, nullable=False, default=False)

    # Audit
    needs_audit = Column(Boolean, nullable=False, default=False)
    audit_note = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True
    )

    teacher = relationship("Teacher", lazy="joined", innerjoin=True)
    student = relationship("Student", lazy="joined", innerjoin=True)
    cancellation_requests = relationship(
        "CancellationRequest", back_populates="booking", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled', 'absent')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "absent_type IS NULL OR absent_type IN ('student', 'teacher')",
            name="ck_bookings_absent_type",
        ),
        CheckConstraint("late_minutes >= 0", name="check_late_minutes_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: student={self.student_id}, teacher={self.teacher_id}, "
            f"date={self.booking_date}, time={self.start_time}, status={self.status}>"
        )

    @property
    def is_terminal(self) -> bool:
        return BookingStatus(self.status).is_terminal

    @property
    def scheduled_start(self) -> datetime:
        """Scheduled start as an aware UTC datetime."""
        return scheduled_start_utc(cast(date, self.booking_date), cast(time, self.start_time))


# Backstop for slot exclusivity: one live booking per (teacher, date, time).
Index(
    "uq_bookings_teacher_slot_active",
    Booking.teacher_id,
    Booking.booking_date,
    Booking.start_time,
    unique=True,
    sqlite_where=(Booking.status != BookingStatus.CANCELLED.value),
    postgresql_where=(Booking.status != BookingStatus.CANCELLED.value),
)
