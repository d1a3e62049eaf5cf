# backend/tutorbook/repositories/booking_repository.py
"""
Booking Repository

Implements data access for the booking lifecycle:
- Booking CRUD operations
- Student/teacher booking queries
- Slot-tuple conflict lookups
- Attendance monitor candidate selection and guarded absence writes
- Payroll range queries
"""

from datetime import date, time
import logging
from typing import Any, List, Optional, Set, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.enums import BookingStatus
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_ACTIVE_STATUSES = [status.value for status in BookingStatus.active()]


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def create(self, **kwargs: Any) -> Booking:
        """Create a booking, exposing integrity errors for conflict handling."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def get_for_update(self, booking_id: str) -> Optional[Booking]:
        """Load a booking holding a row lock until the transaction ends."""
        try:
            return (
                self.db.query(Booking)
                .filter(Booking.id == booking_id)
                .with_for_update(of=Booking)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to load booking: {str(e)}")

    def get_by_classroom_id(self, classroom_id: str) -> Optional[Booking]:
        return self.find_one_by(classroom_id=classroom_id)

    def get_live_booking_at(
        self, teacher_id: str, booking_date: date, start_time: time
    ) -> Optional[Booking]:
        """Any non-cancelled booking occupying the (teacher, date, time) tuple."""
        try:
            return (
                self.db.query(Booking)
                .filter(
                    Booking.teacher_id == teacher_id,
                    Booking.booking_date == booking_date,
                    Booking.start_time == start_time,
                    Booking.status != BookingStatus.CANCELLED.value,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking slot conflict: {str(e)}")
            raise RepositoryException(f"Failed to check booking conflict: {str(e)}")

    def live_slot_keys(
        self, teacher_id: str, start_date: date, end_date: date
    ) -> Set[Tuple[date, time]]:
        """(date, time) tuples in range held by non-cancelled bookings."""
        try:
            rows = (
                self.db.query(Booking.booking_date, Booking.start_time)
                .filter(
                    Booking.teacher_id == teacher_id,
                    Booking.booking_date >= start_date,
                    Booking.booking_date <= end_date,
                    Booking.status != BookingStatus.CANCELLED.value,
                )
                .all()
            )
            return {(row[0], row[1]) for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading booked slots: {str(e)}")
            raise RepositoryException(f"Failed to load booked slots: {str(e)}")

    def count_for_student(self, student_id: str) -> int:
        return self.count(student_id=student_id)

    def list_for_student(
        self,
        student_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_cancelled: bool = False,
    ) -> List[Booking]:
        try:
            query = self._in_range(
                self.db.query(Booking).filter(Booking.student_id == student_id),
                start_date,
                end_date,
            )
            if not include_cancelled:
                query = query.filter(Booking.status != BookingStatus.CANCELLED.value)
            return query.order_by(Booking.booking_date, Booking.start_time).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings for student {student_id}: {str(e)}")
            raise RepositoryException(f"Failed to list student bookings: {str(e)}")

    def list_for_teacher(
        self,
        teacher_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        """Bookings for a teacher ordered by date and time; inclusive range."""
        try:
            query = self._in_range(
                self.db.query(Booking).filter(Booking.teacher_id == teacher_id),
                start_date,
                end_date,
            )
            if status is not None:
                query = query.filter(Booking.status == status.value)
            return query.order_by(Booking.booking_date, Booking.start_time).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to list teacher bookings: {str(e)}")

    def list_unchecked_for_date(self, booking_date: date) -> List[Booking]:
        """Active bookings on the date that the attendance monitor has not resolved."""
        try:
            return (
                self.db.query(Booking)
                .filter(
                    Booking.booking_date == booking_date,
                    Booking.status.in_(_ACTIVE_STATUSES),
                    Booking.absent_checked.is_(False),
                )
                .order_by(Booking.start_time)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading attendance candidates: {str(e)}")
            raise RepositoryException(f"Failed to load attendance candidates: {str(e)}")

    def mark_absent_if_active(self, booking_id: str, **values: Any) -> bool:
        """
        Write an absence outcome only if the booking is still pending/confirmed.

        Returns False when a concurrent transition already resolved the booking.
        """
        try:
            result = self.db.execute(
                update(Booking)
                .where(Booking.id == booking_id, Booking.status.in_(_ACTIVE_STATUSES))
                .values(status=BookingStatus.ABSENT.value, absent_checked=True, **values)
            )
            return result.rowcount == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error marking booking {booking_id} absent: {str(e)}")
            raise RepositoryException(f"Failed to mark booking absent: {str(e)}")

    @staticmethod
    def _in_range(query: Query, start_date: Optional[date], end_date: Optional[date]) -> Query:
        if start_date is not None:
            query = query.filter(Booking.booking_date >= start_date)
        if end_date is not None:
            query = query.filter(Booking.booking_date <= end_date)
        return query
