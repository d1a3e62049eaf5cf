# backend/tutorbook/services/attendance_monitor.py
"""
Attendance Monitor Service

Resolves today's in-flight bookings once their attendance window has lapsed.
The scan is a plain function of the store and the clock; scheduling and
overlap protection live in ``tutorbook.tasks.attendance_tasks``.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
import logging
from typing import Any, Dict, Optional

from celery.exceptions import SoftTimeLimitExceeded
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import AbsentType, ActorRole, NotificationType
from ..core.timezone_utils import minutes_between
from ..models.booking import Booking
from ..repositories.factory import RepositoryFactory
from .base import BaseService, Clock
from .notification_service import NotificationOutbox, NotificationService

logger = logging.getLogger(__name__)

ABSENCE_REASONS = {
    AbsentType.TEACHER: "Teacher did not enter the classroom within the attendance window",
    AbsentType.STUDENT: "Student did not enter the classroom within the attendance window",
}


def classify_absence(teacher_entered: bool, student_entered: bool) -> Optional[AbsentType]:
    """
    Decide who missed the class.

    A teacher who never entered is absent whether or not the student came;
    a present teacher with a missing student makes it a student absence.
    None means both attended.
    """
    if not teacher_entered:
        return AbsentType.TEACHER
    if not student_entered:
        return AbsentType.STUDENT
    return None


@dataclass
class AttendanceCheckSummary:
    checked: int = 0
    teacher_absent: int = 0
    student_absent: int = 0
    fully_attended: int = 0
    not_due: int = 0
    skipped: int = 0
    errors: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class AttendanceMonitorService(BaseService):
    def __init__(
        self,
        db: Session,
        notifier: Optional[NotificationService] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock)
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.outbox = NotificationOutbox(notifier or NotificationService())

    @BaseService.measure_operation("check_attendance")
    def run_check(self) -> AttendanceCheckSummary:
        """
        One monitor tick.

        Each booking is resolved in its own savepoint so that a failure on
        one row is logged and does not undo the others.
        """
        now = self.now()
        today = now.astimezone(settings.tz).date()
        threshold = settings.absence_threshold_minutes
        summary = AttendanceCheckSummary()

        candidates = self.repository.list_unchecked_for_date(today)
        self.logger.debug("Found %s bookings to check for %s", len(candidates), today)

        for booking in candidates:
            elapsed = minutes_between(booking.scheduled_start, now)
            if elapsed < threshold:
                summary.not_due += 1
                continue
            summary.checked += 1
            try:
                with self.db.begin_nested():
                    outcome = self._resolve(booking, now)
            except SoftTimeLimitExceeded:
                summary.checked -= 1
                self.logger.warning(
                    "Attendance check hit its time limit; remaining bookings wait for the next tick"
                )
                break
            except Exception as exc:
                summary.errors += 1
                self.logger.error(
                    "Error checking attendance for booking %s: %s",
                    booking.id,
                    exc,
                    exc_info=True,
                )
                continue

            setattr(summary, outcome, getattr(summary, outcome) + 1)

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.outbox.discard()
            raise

        self.outbox.flush()
        if summary.checked:
            self.logger.info("Attendance check completed", extra=summary.to_dict())
        return summary

    def _resolve(self, booking: Booking, now: datetime) -> str:
        """Apply the outcome; returns the summary counter to bump."""
        absent_type = classify_absence(bool(booking.teacher_entered), bool(booking.student_entered))
        if absent_type is None:
            booking.absent_checked = True
            self.db.flush()
            return "fully_attended"

        written = self.repository.mark_absent_if_active(
            booking.id,
            absent_type=absent_type.value,
            absent_marked_at=now,
            absent_reason=ABSENCE_REASONS[absent_type],
        )
        if not written:
            # Resolved by a concurrent transition since the scan started
            self.logger.info("Booking %s already resolved, skipping", booking.id)
            return "skipped"

        party = "Teacher" if absent_type == AbsentType.TEACHER else "Student"
        self.outbox.add(
            booking.teacher_id,
            ActorRole.TEACHER,
            NotificationType.ABSENT,
            f"{party} was absent for class on {booking.booking_date.isoformat()} at "
            f"{booking.start_time.strftime('%H:%M')}. Class marked as absent.",
        )
        self.logger.info("Booking %s marked as %s absent", booking.id, absent_type.value)
        return f"{absent_type.value}_absent"
