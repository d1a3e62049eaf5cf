"""
Timezone utilities for the tutoring platform.

Booking dates and times are wall-clock values in the platform timezone;
timestamps are stored in UTC.
"""

from datetime import date, datetime, time, timezone
from typing import Optional

from .config import settings


def platform_now() -> datetime:
    """Current datetime in the platform timezone."""
    return datetime.now(timezone.utc).astimezone(settings.tz)


def platform_today() -> date:
    """'Today' in the platform timezone."""
    return platform_now().date()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive values are assumed to already be UTC; SQLite hands timezone-aware
    columns back without tzinfo.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def scheduled_start_utc(booking_date: date, start_time: time) -> datetime:
    """Convert a booking's wall-clock date and time to an aware UTC datetime."""
    local = settings.tz.localize(datetime.combine(booking_date, start_time))  # type: ignore[attr-defined]
    return local.astimezone(timezone.utc)


def minutes_between(start: datetime, end: datetime) -> float:
    """Signed minutes from start to end."""
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / 60


def hours_between(start: datetime, end: datetime) -> float:
    """Signed hours from start to end."""
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / 3600


def to_platform_date(value: Optional[datetime]) -> Optional[date]:
    if value is None:
        return None
    return ensure_utc(value).astimezone(settings.tz).date()
