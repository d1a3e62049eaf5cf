"""Cancellation request schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from ._strict_base import StrictModel, StrictRequestModel


class CancellationRequestCreate(StrictRequestModel):
    booking_id: str
    # Length bounds are enforced by the service from settings
    reason: str = Field(..., max_length=2000)


class CancellationReview(StrictRequestModel):
    decision: Literal["approved", "rejected"]
    admin_notes: Optional[str] = Field(None, max_length=500)


class CancellationRequestResponse(StrictModel):
    id: str
    booking_id: str
    requester_role: str
    requester_id: str
    reason: str
    status: str
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None
