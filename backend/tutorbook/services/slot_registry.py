# backend/tutorbook/services/slot_registry.py
"""
Slot Registry Service

Owns teacher availability: publishing a week of slots, withdrawing slots,
and the reserve/release pair the booking state machine uses to keep the
``available`` projection consistent with live bookings.
"""

from dataclasses import dataclass
from datetime import date, time, timedelta
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.actor import Actor
from ..core.enums import ActorRole, NotificationType
from ..core.exceptions import NotAuthorizedException, SlotUnavailableException, ValidationException
from ..models.slot import Slot
from ..models.user import Teacher
from ..repositories.factory import RepositoryFactory
from .base import BaseService, Clock
from .identity_directory import IdentityDirectory
from .notification_service import NotificationOutbox, NotificationService

logger = logging.getLogger(__name__)

SlotKey = Tuple[date, time]

PUBLISH_WINDOW_DAYS = 7


@dataclass(frozen=True)
class PublishResult:
    teacher_id: str
    range_start: date
    range_end: date
    published: int
    removed: int
    kept_unavailable: int


def normalize_slot_keys(keys: Iterable[SlotKey]) -> List[SlotKey]:
    """Truncate to minute granularity, drop duplicates, sort."""
    return sorted({(d, t.replace(second=0, microsecond=0)) for d, t in keys})


def publish_range(keys: List[SlotKey]) -> Tuple[date, date]:
    """Seven days from the earliest date, stretched to cover the latest."""
    start = keys[0][0]
    end = max(start + timedelta(days=PUBLISH_WINDOW_DAYS - 1), keys[-1][0])
    return start, end


class SlotRegistryService(BaseService):
    def __init__(
        self,
        db: Session,
        notifier: Optional[NotificationService] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock)
        self.repository = RepositoryFactory.create_slot_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.directory = IdentityDirectory(db)
        self.outbox = NotificationOutbox(notifier or NotificationService())

    @BaseService.measure_operation("publish_slots")
    def publish(
        self, teacher_id: str, slots: Iterable[SlotKey], actor: Optional[Actor] = None
    ) -> PublishResult:
        """
        Replace the teacher's slots in the affected range with ``slots``.

        Slots that back a live booking stay unavailable so that publishing
        never reopens a booked tuple.
        """
        self._check_teacher_actor(teacher_id, actor)
        keys = normalize_slot_keys(slots)
        if not keys:
            raise ValidationException("At least one slot is required", code="EMPTY_SLOT_LIST")
        range_start, range_end = publish_range(keys)

        with self.transaction():
            self.directory.get_teacher(teacher_id)
            removed = self.repository.delete_range(teacher_id, range_start, range_end)
            booked = self.booking_repository.live_slot_keys(teacher_id, range_start, range_end)
            published = self.repository.bulk_insert(teacher_id, keys, booked)
            kept_unavailable = len(booked.intersection(keys))
            self.outbox.add(
                teacher_id,
                ActorRole.TEACHER,
                NotificationType.SLOTS,
                f"{published} slots opened for week of "
                f"{range_start.isoformat()} - {range_end.isoformat()}.",
            )

        self.outbox.flush()
        self.logger.info(
            "Published slots",
            extra={
                "teacher_id": teacher_id,
                "range_start": range_start.isoformat(),
                "range_end": range_end.isoformat(),
                "published": published,
                "removed": removed,
            },
        )
        return PublishResult(
            teacher_id=teacher_id,
            range_start=range_start,
            range_end=range_end,
            published=published,
            removed=removed,
            kept_unavailable=kept_unavailable,
        )

    @BaseService.measure_operation("withdraw_slots")
    def withdraw(
        self, teacher_id: str, slots: Iterable[SlotKey], actor: Optional[Actor] = None
    ) -> int:
        """Delete the named slots regardless of state. Returns the number deleted."""
        self._check_teacher_actor(teacher_id, actor)
        keys = normalize_slot_keys(slots)
        with self.transaction():
            deleted = self.repository.delete_slots(teacher_id, keys)
        self.logger.info("Withdrew %s of %s slots for teacher %s", deleted, len(keys), teacher_id)
        return deleted

    def reserve(self, teacher_id: str, slot_date: date, start_time: time) -> None:
        """
        Claim an open slot inside the caller's transaction.

        Raises:
            SlotUnavailableException: the slot is missing or already taken
        """
        if not self.repository.reserve(teacher_id, slot_date, start_time):
            raise SlotUnavailableException(teacher_id, slot_date, start_time.strftime("%H:%M"))

    def release(self, teacher_id: str, slot_date: date, start_time: time) -> Slot:
        """Reopen a slot inside the caller's transaction, recreating it if needed."""
        return self.repository.release(teacher_id, slot_date, start_time)

    def list_teacher_slots(
        self,
        teacher_id: str,
        start_date: date,
        end_date: date,
        available_only: bool = False,
    ) -> List[Slot]:
        if start_date > end_date:
            raise ValidationException("start_date must not be after end_date", code="INVALID_RANGE")
        return self.repository.list_for_teacher(teacher_id, start_date, end_date, available_only)

    def find_available_teachers(self, slot_date: date, start_time: time) -> List[Teacher]:
        return self.repository.find_available_teachers(
            slot_date, start_time.replace(second=0, microsecond=0)
        )

    @staticmethod
    def _check_teacher_actor(teacher_id: str, actor: Optional[Actor]) -> None:
        if actor is None or actor.is_admin:
            return
        if not (actor.is_teacher and actor.id == teacher_id):
            raise NotAuthorizedException("You can only manage your own slots")
