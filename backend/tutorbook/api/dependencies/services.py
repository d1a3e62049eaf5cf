# backend/tutorbook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.booking_service import BookingService
from ...services.cancellation_service import CancellationService
from ...services.notification_service import NotificationService
from ...services.payroll_service import PayrollService
from ...services.rate_config_service import RateConfigService
from ...services.slot_registry import SlotRegistryService
from .database import get_db


@lru_cache(maxsize=1)
def get_notification_service() -> NotificationService:
    """Notifications write through their own sessions, so one emitter is shared."""
    return NotificationService()


def get_slot_registry(
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> SlotRegistryService:
    return SlotRegistryService(db, notifier=notifier)


def get_booking_service(
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> BookingService:
    return BookingService(db, notifier=notifier)


def get_cancellation_service(
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> CancellationService:
    return CancellationService(db, notifier=notifier)


def get_payroll_service(
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> PayrollService:
    return PayrollService(db, notifier=notifier)


def get_rate_config_service(db: Session = Depends(get_db)) -> RateConfigService:
    return RateConfigService(db)
