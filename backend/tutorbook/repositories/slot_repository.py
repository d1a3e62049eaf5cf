# backend/tutorbook/repositories/slot_repository.py
"""
Slot Repository

Data access for teacher availability slots. The only write that races with
other requests is ``reserve``, which is a single conditional UPDATE so that
two concurrent bookings can never both claim the same slot.
"""

from datetime import date, time
import logging
from typing import Iterable, List, Optional, Set, Tuple

from sqlalchemy import and_, exists, tuple_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from ..models.slot import Slot
from ..models.user import Teacher
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

SlotKey = Tuple[date, time]


class SlotRepository(BaseRepository[Slot]):
    def __init__(self, db: Session):
        super().__init__(db, Slot)

    def get_slot(self, teacher_id: str, slot_date: date, start_time: time) -> Optional[Slot]:
        return self.find_one_by(teacher_id=teacher_id, slot_date=slot_date, start_time=start_time)

    def list_for_teacher(
        self,
        teacher_id: str,
        start_date: date,
        end_date: date,
        available_only: bool = False,
    ) -> List[Slot]:
        """Slots for a teacher within an inclusive date range, in calendar order."""
        try:
            query = self.db.query(Slot).filter(
                Slot.teacher_id == teacher_id,
                Slot.slot_date >= start_date,
                Slot.slot_date <= end_date,
            )
            if available_only:
                query = query.filter(Slot.available.is_(True))
            return query.order_by(Slot.slot_date, Slot.start_time).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing slots for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to list slots: {str(e)}")

    def delete_range(self, teacher_id: str, start_date: date, end_date: date) -> int:
        """Delete every slot of the teacher in the inclusive range."""
        try:
            deleted = (
                self.db.query(Slot)
                .filter(
                    Slot.teacher_id == teacher_id,
                    Slot.slot_date >= start_date,
                    Slot.slot_date <= end_date,
                )
                .delete(synchronize_session=False)
            )
            self.db.flush()
            return int(deleted)
        except SQLAlchemyError as e:
            self.logger.error(f"Error clearing slots for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to clear slots: {str(e)}")

    def bulk_insert(self, teacher_id: str, keys: Iterable[SlotKey], booked: Set[SlotKey]) -> int:
        """Insert slots; keys in ``booked`` are inserted unavailable."""
        try:
            slots = [
                Slot(
                    teacher_id=teacher_id,
                    slot_date=slot_date,
                    start_time=start_time,
                    available=(slot_date, start_time) not in booked,
                )
                for slot_date, start_time in keys
            ]
            self.db.add_all(slots)
            self.db.flush()
            return len(slots)
        except SQLAlchemyError as e:
            self.logger.error(f"Error inserting slots for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to insert slots: {str(e)}")

    def delete_slots(self, teacher_id: str, keys: List[SlotKey]) -> int:
        """Delete the named slots regardless of state. Missing keys are ignored."""
        if not keys:
            return 0
        try:
            deleted = (
                self.db.query(Slot)
                .filter(
                    Slot.teacher_id == teacher_id,
                    tuple_(Slot.slot_date, Slot.start_time).in_(keys),
                )
                .delete(synchronize_session=False)
            )
            self.db.flush()
            return int(deleted)
        except SQLAlchemyError as e:
            self.logger.error(f"Error withdrawing slots for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to withdraw slots: {str(e)}")

    def reserve(self, teacher_id: str, slot_date: date, start_time: time) -> bool:
        """
        Flip an open slot to unavailable.

        Returns True only when this call performed the flip; a missing or
        already-taken slot leaves the row untouched and returns False.
        """
        try:
            result = self.db.execute(
                update(Slot)
                .where(
                    Slot.teacher_id == teacher_id,
                    Slot.slot_date == slot_date,
                    Slot.start_time == start_time,
                    Slot.available.is_(True),
                )
                .values(available=False)
            )
            return result.rowcount == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error reserving slot for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to reserve slot: {str(e)}")

    def release(self, teacher_id: str, slot_date: date, start_time: time) -> Slot:
        """Mark the slot available again, recreating it if it was withdrawn."""
        slot = self.get_slot(teacher_id, slot_date, start_time)
        if slot is None:
            return self.create(
                teacher_id=teacher_id, slot_date=slot_date, start_time=start_time, available=True
            )
        slot.available = True
        self.db.flush()
        return slot

    def find_available_teachers(self, slot_date: date, start_time: time) -> List[Teacher]:
        """Teachers with an open slot at the tuple and no live booking there."""
        try:
            live_booking = exists().where(
                and_(
                    Booking.teacher_id == Slot.teacher_id,
                    Booking.booking_date == Slot.slot_date,
                    Booking.start_time == Slot.start_time,
                    Booking.status != BookingStatus.CANCELLED.value,
                )
            )
            return (
                self.db.query(Teacher)
                .join(Slot, Slot.teacher_id == Teacher.id)
                .filter(
                    Slot.slot_date == slot_date,
                    Slot.start_time == start_time,
                    Slot.available.is_(True),
                    Teacher.is_active.is_(True),
                    ~live_booking,
                )
                .order_by(Teacher.name)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding available teachers: {str(e)}")
            raise RepositoryException(f"Failed to find available teachers: {str(e)}")
