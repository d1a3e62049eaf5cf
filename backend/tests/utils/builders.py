"""Shared test constants and builders."""

from datetime import date, datetime, time, timedelta

from tutorbook.core.actor import Actor
from tutorbook.core.timezone_utils import scheduled_start_utc

# A Monday; 09:00 Manila is 01:00 UTC
CLASS_DATE = date(2026, 3, 2)
CLASS_TIME = time(9, 0)


class FrozenClock:
    """Callable clock for services; advance it to move time forward."""

    def __init__(self, current: datetime):
        self.current = current

    def __call__(self) -> datetime:
        return self.current

    def set(self, current: datetime) -> None:
        self.current = current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current

    def at_offset(self, booking_date: date, start_time: time, **kwargs) -> datetime:
        """Move to the scheduled start of (date, time) plus an offset."""
        self.current = scheduled_start_utc(booking_date, start_time) + timedelta(**kwargs)
        return self.current


def actor_headers(actor: Actor) -> dict:
    return {"X-Actor-Role": actor.role.value, "X-Actor-Id": actor.id}
