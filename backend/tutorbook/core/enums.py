# backend/tutorbook/core/enums.py
"""
Core enums for the session lifecycle and payroll engine.

Values are persisted as lowercase strings, matching the status names
the rest of the application already exchanges.
"""

from enum import Enum


class ActorRole(str, Enum):
    """Roles an actor can hold when calling into the core."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Created, attendance may be in progress
    CONFIRMED = "confirmed"  # Legacy rows only, treated like PENDING
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ABSENT = "absent"

    @classmethod
    def active(cls) -> tuple["BookingStatus", ...]:
        return (cls.PENDING, cls.CONFIRMED)

    @classmethod
    def terminal(cls) -> tuple["BookingStatus", ...]:
        return (cls.COMPLETED, cls.CANCELLED, cls.ABSENT)

    @property
    def is_terminal(self) -> bool:
        return self in self.terminal()


class AbsentType(str, Enum):
    """Which party missed the session."""

    STUDENT = "student"
    TEACHER = "teacher"


class CancellationRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentRecordStatus(str, Enum):
    SUCCESS = "success"


class NotificationType(str, Enum):
    """Notification categories emitted by the core."""

    BOOKING = "booking"
    SLOTS = "slots"
    CLASS_COMPLETED = "class-completed"
    ABSENT = "absent"
    STUDENT_ABSENT = "student-absent"
    CANCEL = "cancel"
    CANCELLATION_REQUEST = "cancellation-request"
    SALARY = "salary"
