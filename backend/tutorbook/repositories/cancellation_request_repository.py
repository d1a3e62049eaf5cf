# backend/tutorbook/repositories/cancellation_request_repository.py
"""Data access for cancellation requests."""

from typing import Iterable, List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import CancellationRequestStatus
from ..core.exceptions import RepositoryException
from ..models.cancellation_request import CancellationRequest
from .base_repository import BaseRepository


class CancellationRequestRepository(BaseRepository[CancellationRequest]):
    def __init__(self, db: Session):
        super().__init__(db, CancellationRequest)

    def get_pending_for_booking(self, booking_id: str) -> Optional[CancellationRequest]:
        return self.find_one_by(
            booking_id=booking_id, status=CancellationRequestStatus.PENDING.value
        )

    def list_requests(
        self,
        status: Optional[CancellationRequestStatus] = None,
        requester_id: Optional[str] = None,
    ) -> List[CancellationRequest]:
        """Requests newest first, optionally filtered."""
        try:
            query = self.db.query(CancellationRequest)
            if status is not None:
                query = query.filter(CancellationRequest.status == status.value)
            if requester_id is not None:
                query = query.filter(CancellationRequest.requester_id == requester_id)
            return query.order_by(CancellationRequest.created_at.desc()).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing cancellation requests: {str(e)}")
            raise RepositoryException(f"Failed to list cancellation requests: {str(e)}")

    def approved_booking_ids(self, booking_ids: Iterable[str]) -> Set[str]:
        """Subset of the given bookings that carry an approved cancellation request."""
        ids = list(booking_ids)
        if not ids:
            return set()
        try:
            rows = (
                self.db.query(CancellationRequest.booking_id)
                .filter(
                    CancellationRequest.booking_id.in_(ids),
                    CancellationRequest.status == CancellationRequestStatus.APPROVED.value,
                )
                .all()
            )
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading approved cancellations: {str(e)}")
            raise RepositoryException(f"Failed to load approved cancellations: {str(e)}")
