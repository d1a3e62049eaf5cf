"""
Database models for the session lifecycle and payroll engine.

The models are organized by functionality:
- Identity projection (teachers, students)
- Availability (slots)
- Session lifecycle (bookings, cancellation requests)
- Payroll (payment records, platform config)
- Notifications
"""

from .booking import Booking
from .cancellation_request import CancellationRequest
from .notification import Notification
from .payment_record import PaymentRecord
from .platform_config import PlatformConfig
from .slot import Slot
from .user import Student, Teacher

__all__ = [
    "Booking",
    "CancellationRequest",
    "Notification",
    "PaymentRecord",
    "PlatformConfig",
    "Slot",
    "Student",
    "Teacher",
]
