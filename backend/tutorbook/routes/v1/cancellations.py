# backend/tutorbook/routes/v1/cancellations.py
"""
Cancellation request routes - API v1

Endpoints:
    POST / - File a cancellation request
    GET / - List requests (admins: all, others: their own)
    POST /{request_id}/review - Approve or reject (admin)
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ...api.dependencies import get_cancellation_service, get_current_actor, require_admin
from ...core.actor import Actor
from ...core.enums import CancellationRequestStatus
from ...schemas.cancellation import (
    CancellationRequestCreate,
    CancellationRequestResponse,
    CancellationReview,
)
from ...services.cancellation_service import CancellationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cancellations-v1"])


@router.post(
    "/", response_model=CancellationRequestResponse, status_code=status.HTTP_201_CREATED
)
async def request_cancellation(
    payload: CancellationRequestCreate = Body(...),
    actor: Actor = Depends(get_current_actor),
    cancellation_service: CancellationService = Depends(get_cancellation_service),
) -> CancellationRequestResponse:
    request = await asyncio.to_thread(
        cancellation_service.request, payload.booking_id, actor, payload.reason
    )
    return CancellationRequestResponse.model_validate(request)


@router.get("/", response_model=List[CancellationRequestResponse])
async def list_cancellation_requests(
    status_filter: Optional[CancellationRequestStatus] = Query(None, alias="status"),
    requester_id: Optional[str] = Query(None),
    actor: Actor = Depends(get_current_actor),
    cancellation_service: CancellationService = Depends(get_cancellation_service),
) -> List[CancellationRequestResponse]:
    requests = await asyncio.to_thread(
        cancellation_service.list_requests, status_filter, requester_id, actor
    )
    return [CancellationRequestResponse.model_validate(r) for r in requests]


@router.post("/{request_id}/review", response_model=CancellationRequestResponse)
async def review_cancellation_request(
    request_id: str,
    payload: CancellationReview = Body(...),
    actor: Actor = Depends(require_admin),
    cancellation_service: CancellationService = Depends(get_cancellation_service),
) -> CancellationRequestResponse:
    request = await asyncio.to_thread(
        cancellation_service.review,
        request_id,
        CancellationRequestStatus(payload.decision),
        actor,
        payload.admin_notes,
    )
    return CancellationRequestResponse.model_validate(request)
