# backend/tutorbook/services/booking_service.py
"""
Booking Service

Drives a booking from creation through attendance to one of its terminal
outcomes (completed, absent, cancelled). Every transition loads the booking
under a row lock and checks its preconditions inside the same transaction
as the write, so a failed check never leaves a partial change behind.
"""

from datetime import date, datetime, time
import logging
import math
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.actor import Actor
from ..core.config import settings
from ..core.constants import STUDENT_SELF_CANCEL_REASON, STUDENT_TECHNICAL_ISSUE_NOTE
from ..core.enums import AbsentType, ActorRole, BookingStatus, NotificationType
from ..core.exceptions import (
    AlreadyResolvedException,
    BusinessRuleException,
    ConflictException,
    DuplicateBookingException,
    DurationRequirementNotMetException,
    NotAuthorizedException,
    NotFoundException,
    TeacherNotPresentException,
    ValidationException,
)
from ..core.timezone_utils import ensure_utc, minutes_between
from ..models.booking import Booking
from ..repositories.factory import RepositoryFactory
from .base import BaseService, Clock
from .identity_directory import IdentityDirectory
from .notification_service import NotificationOutbox, NotificationService
from .slot_registry import SlotRegistryService

logger = logging.getLogger(__name__)

CORRECTABLE_STATUSES = (BookingStatus.COMPLETED, BookingStatus.ABSENT)


def build_classroom_id(booking_date: date, start_time: time, student_handle: str, sequence: int) -> str:
    """``YYYYMMDD`` + ``HHMM`` + student handle + running booking number."""
    return f"{booking_date:%Y%m%d}{start_time:%H%M}{student_handle}{sequence}"


def compute_late_minutes(scheduled_start: datetime, entered_at: datetime) -> int:
    """Whole minutes past the scheduled start, never negative."""
    return max(0, math.floor(minutes_between(scheduled_start, entered_at)))


def _describe(booking: Booking) -> str:
    return f"{booking.booking_date.isoformat()} at {booking.start_time.strftime('%H:%M')}"


class BookingService(BaseService):
    """
    Booking state machine.

    Operations accept an optional ``actor``. When given, the actor must own
    the booking in the role the operation expects or be an admin where the
    operation allows it. Internal callers (attendance monitor, cancellation
    review, payroll) pass no actor.
    """

    def __init__(
        self,
        db: Session,
        notifier: Optional[NotificationService] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock)
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.directory = IdentityDirectory(db)
        notifier = notifier or NotificationService()
        self.slot_registry = SlotRegistryService(db, notifier=notifier, clock=self.clock)
        self.outbox = NotificationOutbox(notifier)

    # Creation

    @BaseService.measure_operation("create_booking")
    def create(
        self,
        student_id: str,
        teacher_id: str,
        booking_date: date,
        start_time: time,
        lesson_ref: str,
        student_level: str,
        actor: Optional[Actor] = None,
    ) -> Booking:
        """
        Book a slot for a student.

        The slot is claimed first with a conditional update; a booking row is
        inserted only if that claim succeeded, all in one transaction.

        Raises:
            ValidationException: missing lesson or level
            NotFoundException: unknown teacher or student
            SlotUnavailableException: no open slot at the tuple
            DuplicateBookingException: a live booking already holds the tuple
        """
        if actor is not None and not actor.is_admin:
            if not (actor.is_student and actor.id == student_id):
                raise NotAuthorizedException("Students can only book classes for themselves")
        if not (lesson_ref or "").strip():
            raise ValidationException("Lesson is required", code="LESSON_REQUIRED")
        if not (student_level or "").strip():
            raise ValidationException("Student level is required", code="STUDENT_LEVEL_REQUIRED")
        start_time = start_time.replace(second=0, microsecond=0)

        slot_label = start_time.strftime("%H:%M")
        try:
            with self.transaction():
                teacher = self.directory.get_teacher(teacher_id)
                student = self.directory.get_student(student_id)

                self.slot_registry.reserve(teacher_id, booking_date, start_time)

                if self.repository.get_live_booking_at(teacher_id, booking_date, start_time):
                    raise DuplicateBookingException(teacher_id, booking_date, slot_label)

                sequence = self.repository.count_for_student(student_id) + 1
                booking = self._insert(
                    student_id=student_id,
                    teacher_id=teacher_id,
                    booking_date=booking_date,
                    start_time=start_time,
                    lesson_ref=lesson_ref.strip(),
                    student_level=student_level.strip(),
                    classroom_id=build_classroom_id(
                        booking_date, start_time, student.handle, sequence
                    ),
                    status=BookingStatus.PENDING.value,
                )
                self.outbox.add(
                    teacher.id,
                    ActorRole.TEACHER,
                    NotificationType.BOOKING,
                    f"New class booked for {_describe(booking)} with {student.name}.",
                )
        except Exception:
            self.outbox.discard()
            raise

        self.outbox.flush()
        self.logger.info(
            "Booking created",
            extra={
                "booking_id": booking.id,
                "teacher_id": teacher_id,
                "student_id": student_id,
                "classroom_id": booking.classroom_id,
            },
        )
        return booking

    # Attendance

    @BaseService.measure_operation("mark_entered")
    def mark_entered(
        self,
        booking_id: str,
        role: ActorRole,
        actor: Optional[Actor] = None,
    ) -> Booking:
        """
        Record that a participant entered the classroom at the server's clock.

        The first entry wins; repeated calls keep the original timestamp
        and late minutes.
        """
        if role not in (ActorRole.TEACHER, ActorRole.STUDENT):
            raise ValidationException("Only teachers and students enter classrooms")
        entered_at = ensure_utc(self.now())

        with self.transaction():
            booking = self.load_for_update(booking_id)
            self._authorize(booking, actor, {role})
            self._ensure_not_terminal(booking)

            if role == ActorRole.TEACHER and not booking.teacher_entered:
                booking.teacher_entered = True
                booking.teacher_entered_at = entered_at
                booking.late_minutes = compute_late_minutes(booking.scheduled_start, entered_at)
            elif role == ActorRole.STUDENT and not booking.student_entered:
                booking.student_entered = True
                booking.student_entered_at = entered_at

        return booking

    @BaseService.measure_operation("mark_finished")
    def mark_finished(self, booking_id: str, actor: Optional[Actor] = None) -> Booking:
        """
        Complete a class inside the completion window.

        A class the student never entered may still be finished; it is
        flagged for audit as a student-side technical issue.

        Raises:
            AlreadyResolvedException: the booking is terminal
            TeacherNotPresentException: the teacher never entered
            DurationRequirementNotMetException: outside the completion window
        """
        now = self.now()
        window_min = settings.completion_window_min_minutes
        window_max = settings.completion_window_max_minutes

        with self.transaction():
            booking = self.load_for_update(booking_id)
            self._authorize(booking, actor, {ActorRole.TEACHER})
            self._ensure_not_terminal(booking)
            if not booking.teacher_entered:
                raise TeacherNotPresentException(booking.id)

            duration = minutes_between(booking.scheduled_start, now)
            if not window_min <= duration <= window_max:
                raise DurationRequirementNotMetException(duration, window_min, window_max)

            booking.status = BookingStatus.COMPLETED.value
            booking.finished_at = now
            booking.class_completed = True
            if not booking.student_entered:
                booking.needs_audit = True
                booking.audit_note = STUDENT_TECHNICAL_ISSUE_NOTE
                message = f"Class marked as finished for {_describe(booking)} (Student had technical issues)"
            else:
                message = f"Class marked as finished for {_describe(booking)}"
            self.outbox.add(
                booking.teacher_id, ActorRole.TEACHER, NotificationType.CLASS_COMPLETED, message
            )

        self.outbox.flush()
        self.logger.info("Booking %s completed after %.2f minutes", booking.id, duration)
        return booking

    @BaseService.measure_operation("mark_student_absent")
    def mark_student_absent(
        self, booking_id: str, reason: Optional[str] = None, actor: Optional[Actor] = None
    ) -> Booking:
        """Teacher reports that the student did not show up."""
        with self.transaction():
            booking = self.load_for_update(booking_id)
            self._authorize(booking, actor, {ActorRole.TEACHER})
            self._ensure_not_terminal(booking)
            if not booking.teacher_entered:
                raise TeacherNotPresentException(booking.id, action="mark the student absent")
            self._apply_absence(
                booking, AbsentType.STUDENT, reason or "Student did not attend the class"
            )
            self.outbox.add(
                booking.teacher_id,
                ActorRole.TEACHER,
                NotificationType.STUDENT_ABSENT,
                f"Student marked as absent for {_describe(booking)}",
            )

        self.outbox.flush()
        return booking

    @BaseService.measure_operation("mark_teacher_absent")
    def mark_teacher_absent(
        self, booking_id: str, reason: Optional[str] = None, actor: Optional[Actor] = None
    ) -> Booking:
        """Record a teacher no-show (admin or internal callers only)."""
        with self.transaction():
            booking = self.load_for_update(booking_id)
            self._authorize(booking, actor, set())
            self._ensure_not_terminal(booking)
            self._apply_absence(
                booking, AbsentType.TEACHER, reason or "Teacher did not attend the class"
            )
            self.outbox.add(
                booking.teacher_id,
                ActorRole.TEACHER,
                NotificationType.ABSENT,
                f"Teacher was absent for class on {_describe(booking)}. Class marked as absent.",
            )

        self.outbox.flush()
        return booking

    # Cancellation

    def apply_cancellation(
        self, booking: Booking, reason: str, cancelled_at: Optional[datetime] = None
    ) -> Booking:
        """
        Cancel a booking inside the caller's transaction and reopen its slot.

        ``cancelled_at`` is when the cancellation was asked for (an approved
        request passes its filing time); defaults to now.

        Queues a teacher notification on ``self.outbox``; the caller flushes
        it after commit.
        """
        self._ensure_not_terminal(booking)
        booking.status = BookingStatus.CANCELLED.value
        booking.cancellation_time = cancelled_at or self.now()
        booking.cancellation_reason = reason
        self.db.flush()
        self.slot_registry.release(booking.teacher_id, booking.booking_date, booking.start_time)
        self.outbox.add(
            booking.teacher_id,
            ActorRole.TEACHER,
            NotificationType.CANCEL,
            f"Class with {booking.student.name} on {booking.booking_date.isoformat()} at "
            f"{booking.start_time.strftime('%H:%M')} was cancelled.",
        )
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel(self, booking_id: str, reason: str, approved_by: Optional[str] = None) -> Booking:
        """Cancel on behalf of an approved cancellation request."""
        with self.transaction():
            booking = self.load_for_update(booking_id)
            self.apply_cancellation(booking, reason)
        self.outbox.flush()
        self.logger.info("Booking %s cancelled (approved by %s)", booking_id, approved_by)
        return booking

    @BaseService.measure_operation("self_cancel_booking")
    def self_cancel(self, booking_id: str, actor: Actor) -> Booking:
        """Student cancels their own booking before the class starts."""
        with self.transaction():
            booking = self.load_for_update(booking_id)
            if not (actor.is_student and booking.student_id == actor.id):
                raise NotAuthorizedException("Only the booking's student can cancel it directly")
            self._ensure_not_terminal(booking)
            if self.now() >= booking.scheduled_start:
                raise BusinessRuleException(
                    "Cannot cancel a class that has already started",
                    code="CLASS_ALREADY_STARTED",
                    details={"booking_id": booking.id},
                )
            self.apply_cancellation(booking, STUDENT_SELF_CANCEL_REASON)

        self.outbox.flush()
        return booking

    # Administrative correction

    @BaseService.measure_operation("correct_booking_status")
    def correct_status(
        self, booking_id: str, status: BookingStatus, actor: Optional[Actor] = None
    ) -> Booking:
        """
        Override an outcome after the fact.

        Only ``completed`` and ``absent`` are valid targets, and a completed
        booking is never rewritten.
        """
        if actor is not None and not actor.is_admin:
            raise NotAuthorizedException("Only administrators can correct booking status")
        status = BookingStatus(status)
        if status not in CORRECTABLE_STATUSES:
            raise ValidationException(
                f"Status can only be corrected to completed or absent, not {status.value}",
                code="INVALID_STATUS",
            )

        with self.transaction():
            booking = self.load_for_update(booking_id)
            if booking.status == BookingStatus.COMPLETED.value:
                raise AlreadyResolvedException(
                    "Completed bookings cannot be changed", current_status=booking.status
                )
            if booking.status == BookingStatus.CANCELLED.value:
                self._reclaim_slot(booking)

            now = self.now()
            previous = booking.status
            booking.status = status.value
            booking.absent_checked = True
            if status == BookingStatus.COMPLETED:
                booking.finished_at = booking.finished_at or now
                booking.class_completed = True
            else:
                booking.absent_marked_at = now
                if booking.absent_type is None:
                    booking.absent_type = (
                        AbsentType.STUDENT.value
                        if booking.teacher_entered
                        else AbsentType.TEACHER.value
                    )

        self.logger.info("Booking %s status corrected %s -> %s", booking.id, previous, status.value)
        return booking

    # Queries

    def get_booking(self, booking_id: str, actor: Optional[Actor] = None) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException(f"Booking {booking_id} not found", code="BOOKING_NOT_FOUND")
        self._authorize(booking, actor, {ActorRole.TEACHER, ActorRole.STUDENT})
        return booking

    def get_by_classroom_id(self, classroom_id: str, actor: Optional[Actor] = None) -> Booking:
        booking = self.repository.get_by_classroom_id(classroom_id)
        if booking is None:
            raise NotFoundException(
                f"No booking for classroom {classroom_id}", code="BOOKING_NOT_FOUND"
            )
        self._authorize(booking, actor, {ActorRole.TEACHER, ActorRole.STUDENT})
        return booking

    def list_student_bookings(
        self,
        student_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_cancelled: bool = False,
        actor: Optional[Actor] = None,
    ) -> List[Booking]:
        self._authorize_owner(student_id, ActorRole.STUDENT, actor)
        return self.repository.list_for_student(student_id, start_date, end_date, include_cancelled)

    def list_teacher_bookings(
        self,
        teacher_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[BookingStatus] = None,
        actor: Optional[Actor] = None,
    ) -> List[Booking]:
        self._authorize_owner(teacher_id, ActorRole.TEACHER, actor)
        return self.repository.list_for_teacher(teacher_id, start_date, end_date, status)

    # Helpers

    def _insert(self, **values) -> Booking:
        try:
            return self.repository.create(**values)
        except IntegrityError as exc:
            self.logger.warning("Booking insert hit uniqueness backstop: %s", exc)
            raise DuplicateBookingException(
                values["teacher_id"], values["booking_date"], values["start_time"].strftime("%H:%M")
            ) from exc

    def load_for_update(self, booking_id: str) -> Booking:
        booking = self.repository.get_for_update(booking_id)
        if booking is None:
            raise NotFoundException(f"Booking {booking_id} not found", code="BOOKING_NOT_FOUND")
        return booking

    def _apply_absence(self, booking: Booking, absent_type: AbsentType, reason: str) -> None:
        booking.status = BookingStatus.ABSENT.value
        booking.absent_type = absent_type.value
        booking.absent_marked_at = self.now()
        booking.absent_reason = reason
        booking.absent_checked = True

    def _reclaim_slot(self, booking: Booking) -> None:
        """Take the slot back when a cancelled booking is corrected to an outcome."""
        holder = self.repository.get_live_booking_at(
            booking.teacher_id, booking.booking_date, booking.start_time
        )
        if holder is not None:
            raise ConflictException(
                "The slot of this cancelled booking has been booked again",
                code="SLOT_REBOOKED",
                details={"booking_id": booking.id, "holder_id": holder.id},
            )
        self.slot_registry.reserve(booking.teacher_id, booking.booking_date, booking.start_time)

    @staticmethod
    def _ensure_not_terminal(booking: Booking) -> None:
        if booking.is_terminal:
            raise AlreadyResolvedException(
                f"Booking is already {booking.status}", current_status=booking.status
            )

    @staticmethod
    def _authorize(booking: Booking, actor: Optional[Actor], roles: Iterable[ActorRole]) -> None:
        if actor is None or actor.is_admin:
            return
        allowed = set(roles)
        if actor.role == ActorRole.TEACHER and ActorRole.TEACHER in allowed:
            if booking.teacher_id == actor.id:
                return
        if actor.role == ActorRole.STUDENT and ActorRole.STUDENT in allowed:
            if booking.student_id == actor.id:
                return
        raise NotAuthorizedException()

    @staticmethod
    def _authorize_owner(owner_id: str, role: ActorRole, actor: Optional[Actor]) -> None:
        if actor is None or actor.is_admin:
            return
        if actor.role != role or actor.id != owner_id:
            raise NotAuthorizedException()
