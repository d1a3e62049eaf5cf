"""
FastAPI dependencies.

Re-exports the dependency callables routes use, so route modules import
from one place.
"""

from .auth import get_current_actor, require_admin
from .database import get_db
from .services import (
    get_booking_service,
    get_cancellation_service,
    get_notification_service,
    get_payroll_service,
    get_rate_config_service,
    get_slot_registry,
)

__all__ = [
    "get_booking_service",
    "get_cancellation_service",
    "get_current_actor",
    "get_db",
    "get_notification_service",
    "get_payroll_service",
    "get_rate_config_service",
    "get_slot_registry",
    "require_admin",
]
