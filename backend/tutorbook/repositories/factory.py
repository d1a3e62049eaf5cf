# backend/tutorbook/repositories/factory.py
"""
Repository Factory

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .cancellation_request_repository import CancellationRequestRepository
    from .notification_repository import NotificationRepository
    from .payment_record_repository import PaymentRecordRepository
    from .platform_config_repository import PlatformConfigRepository
    from .slot_repository import SlotRepository
    from .user_repository import StudentRepository, TeacherRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations in tests.
    """

    @staticmethod
    def create_base_repository(db: Session, model: Any) -> BaseRepository:
        """Create a generic base repository for any model."""
        return BaseRepository(db, model)

    @staticmethod
    def create_slot_repository(db: Session) -> "SlotRepository":
        from .slot_repository import SlotRepository

        return SlotRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_cancellation_request_repository(db: Session) -> "CancellationRequestRepository":
        from .cancellation_request_repository import CancellationRequestRepository

        return CancellationRequestRepository(db)

    @staticmethod
    def create_payment_record_repository(db: Session) -> "PaymentRecordRepository":
        from .payment_record_repository import PaymentRecordRepository

        return PaymentRecordRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)

    @staticmethod
    def create_teacher_repository(db: Session) -> "TeacherRepository":
        from .user_repository import TeacherRepository

        return TeacherRepository(db)

    @staticmethod
    def create_student_repository(db: Session) -> "StudentRepository":
        from .user_repository import StudentRepository

        return StudentRepository(db)

    @staticmethod
    def create_platform_config_repository(db: Session) -> "PlatformConfigRepository":
        from .platform_config_repository import PlatformConfigRepository

        return PlatformConfigRepository(db)
