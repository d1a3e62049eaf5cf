# backend/tutorbook/models/cancellation_request.py
"""Cancellation requests raised against bookings and reviewed by an admin."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import CancellationRequestStatus
from ..database import Base
from .types import UTCDateTime


class CancellationRequest(Base):
    __tablename__ = "cancellation_requests"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=False, index=True)
    requester_role = Column(String(20), nullable=False)
    requester_id = Column(String(26), nullable=False, index=True)
    reason = Column(Text, nullable=False)
    status = Column(
        String(20), nullable=False, default=CancellationRequestStatus.PENDING.value, index=True
    )
    reviewed_by = Column(String(26), nullable=True)
    reviewed_at = Column(UTCDateTime(), nullable=True)
    admin_notes = Column(String(500), nullable=True)
    # Filing time; cancellation penalties are measured from it
    created_at = Column(UTCDateTime(), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True
    )

    booking = relationship("Booking", back_populates="cancellation_requests")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_cancellation_requests_status",
        ),
        CheckConstraint(
            "requester_role IN ('teacher', 'student')",
            name="ck_cancellation_requests_requester_role",
        ),
    )

    def __repr__(self) -> str:
        return f"<CancellationRequest {self.id}: booking={self.booking_id}, status={self.status}>"


# At most one pending request per booking.
Index(
    "uq_cancellation_requests_pending_booking",
    CancellationRequest.booking_id,
    unique=True,
    sqlite_where=(CancellationRequest.status == CancellationRequestStatus.PENDING.value),
    postgresql_where=(CancellationRequest.status == CancellationRequestStatus.PENDING.value),
)
