# backend/tutorbook/services/cancellation_service.py
"""
Cancellation Service

Teachers and students cannot cancel a class outright; they file a request
that an administrator approves or rejects. Approval cancels the booking and
reopens the slot; rejection leaves the booking as it was and marks that a
cancellation was refused.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.actor import Actor
from ..core.config import settings
from ..core.enums import ActorRole, CancellationRequestStatus, NotificationType
from ..core.exceptions import (
    AlreadyResolvedException,
    BusinessRuleException,
    ConflictException,
    NotAuthorizedException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from ..core.timezone_utils import ensure_utc
from ..models.cancellation_request import CancellationRequest
from ..repositories.factory import RepositoryFactory
from .base import BaseService, Clock
from .booking_service import BookingService
from .notification_service import NotificationOutbox, NotificationService

logger = logging.getLogger(__name__)

ADMIN_NOTES_MAX_LENGTH = 500


class CancellationService(BaseService):
    def __init__(
        self,
        db: Session,
        notifier: Optional[NotificationService] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock)
        notifier = notifier or NotificationService()
        self.repository = RepositoryFactory.create_cancellation_request_repository(db)
        self.booking_service = BookingService(db, notifier=notifier, clock=self.clock)
        self.outbox = NotificationOutbox(notifier)

    @BaseService.measure_operation("request_cancellation")
    def request(self, booking_id: str, actor: Actor, reason: str) -> CancellationRequest:
        """
        File a cancellation request for a booking the actor takes part in.

        Raises:
            ValidationException: reason too short or too long
            NotAuthorizedException: actor is not the booking's teacher or student
            AlreadyResolvedException: booking is already terminal
            BusinessRuleException: the class has already started
            ConflictException: a request is already pending for the booking
        """
        reason = (reason or "").strip()
        min_len = settings.cancellation_reason_min_length
        max_len = settings.cancellation_reason_max_length
        if not min_len <= len(reason) <= max_len:
            raise ValidationException(
                f"Cancellation reason must be between {min_len} and {max_len} characters",
                code="INVALID_REASON",
                details={"length": len(reason)},
            )
        if actor.role not in (ActorRole.TEACHER, ActorRole.STUDENT):
            raise NotAuthorizedException("Only the booking's teacher or student can request cancellation")

        try:
            with self.transaction():
                booking = self.booking_service.load_for_update(booking_id)
                owner_id = booking.teacher_id if actor.is_teacher else booking.student_id
                if owner_id != actor.id:
                    raise NotAuthorizedException()
                if booking.is_terminal:
                    raise AlreadyResolvedException(
                        f"Booking is already {booking.status}", current_status=booking.status
                    )
                if self.now() >= booking.scheduled_start:
                    raise BusinessRuleException(
                        "Cannot request cancellation for a class that has already started",
                        code="CLASS_ALREADY_STARTED",
                        details={"booking_id": booking.id},
                    )
                if self.repository.get_pending_for_booking(booking.id) is not None:
                    raise self._pending_conflict(booking.id)

                request = self._insert_pending(booking.id, actor, reason)
                self.outbox.add(
                    booking.teacher_id,
                    ActorRole.TEACHER,
                    NotificationType.CANCELLATION_REQUEST,
                    f"Cancellation request submitted for {booking.booking_date.isoformat()} "
                    f"at {booking.start_time.strftime('%H:%M')}",
                )
        except Exception:
            self.outbox.discard()
            raise

        self.outbox.flush()
        self.logger.info(
            "Cancellation requested",
            extra={"booking_id": booking_id, "request_id": request.id, "requester": actor.id},
        )
        return request

    @BaseService.measure_operation("review_cancellation")
    def review(
        self,
        request_id: str,
        decision: CancellationRequestStatus,
        reviewer: Optional[Actor] = None,
        notes: Optional[str] = None,
    ) -> CancellationRequest:
        """Approve or reject a pending request."""
        if reviewer is not None and not reviewer.is_admin:
            raise NotAuthorizedException("Only administrators can review cancellation requests")
        decision = CancellationRequestStatus(decision)
        if decision == CancellationRequestStatus.PENDING:
            raise ValidationException("Decision must be approved or rejected", code="INVALID_DECISION")
        if notes is not None and len(notes) > ADMIN_NOTES_MAX_LENGTH:
            raise ValidationException(
                f"Admin notes cannot exceed {ADMIN_NOTES_MAX_LENGTH} characters",
                code="INVALID_NOTES",
            )

        try:
            with self.transaction():
                request = self.repository.get_by_id(request_id)
                if request is None:
                    raise NotFoundException(
                        f"Cancellation request {request_id} not found", code="REQUEST_NOT_FOUND"
                    )
                if request.status != CancellationRequestStatus.PENDING.value:
                    raise AlreadyResolvedException(
                        "Cancellation request has already been reviewed",
                        current_status=request.status,
                    )

                booking = self.booking_service.load_for_update(request.booking_id)
                if decision == CancellationRequestStatus.APPROVED:
                    self.booking_service.apply_cancellation(
                        booking, request.reason, cancelled_at=ensure_utc(request.created_at)
                    )
                elif not booking.is_terminal:
                    # A resolved booking keeps its outcome; the rejection lives on the request.
                    booking.cancellation_rejected = True

                request.status = decision.value
                request.reviewed_by = reviewer.id if reviewer else None
                request.reviewed_at = self.now()
                request.admin_notes = notes
                self.outbox.add(
                    request.requester_id,
                    ActorRole(request.requester_role),
                    NotificationType.CANCEL,
                    f"Your cancellation request for {booking.booking_date.isoformat()} at "
                    f"{booking.start_time.strftime('%H:%M')} was {decision.value}.",
                )
        except Exception:
            self.outbox.discard()
            self.booking_service.outbox.discard()
            raise

        self.booking_service.outbox.flush()
        self.outbox.flush()
        self.logger.info("Cancellation request %s %s", request_id, decision.value)
        return request

    def list_requests(
        self,
        status: Optional[CancellationRequestStatus] = None,
        requester_id: Optional[str] = None,
        actor: Optional[Actor] = None,
    ) -> List[CancellationRequest]:
        """Admins see every request; others only their own."""
        if actor is not None and not actor.is_admin:
            if requester_id is not None and requester_id != actor.id:
                raise NotAuthorizedException()
            requester_id = actor.id
        return self.repository.list_requests(status=status, requester_id=requester_id)

    def _insert_pending(self, booking_id: str, actor: Actor, reason: str) -> CancellationRequest:
        try:
            return self.repository.create(
                booking_id=booking_id,
                requester_role=actor.role.value,
                requester_id=actor.id,
                reason=reason,
                status=CancellationRequestStatus.PENDING.value,
                created_at=self.now(),
            )
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise self._pending_conflict(booking_id) from exc
            raise

    @staticmethod
    def _pending_conflict(booking_id: str) -> ConflictException:
        return ConflictException(
            "A cancellation request is already pending for this booking",
            code="CANCELLATION_ALREADY_PENDING",
            details={"booking_id": booking_id},
        )
