# backend/tutorbook/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST / - Book an open slot
    GET /student - A student's bookings
    GET /teacher - A teacher's bookings
    GET /classroom/{classroom_id} - Booking behind a classroom
    GET /{booking_id} - Booking details
    POST /{booking_id}/enter - Record classroom entry
    POST /{booking_id}/finish - Complete the class
    POST /{booking_id}/student-absent - Teacher reports a student no-show
    POST /{booking_id}/teacher-absent - Admin records a teacher no-show
    POST /{booking_id}/cancel - Student cancels before the class starts
    POST /{booking_id}/status - Admin status correction
"""

import asyncio
from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ...api.dependencies import get_booking_service, get_current_actor, require_admin
from ...core.actor import Actor
from ...core.enums import ActorRole, BookingStatus
from ...schemas.booking import (
    AbsenceRequest,
    BookingCreate,
    BookingResponse,
    EnterClassroomRequest,
    StatusCorrectionRequest,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate = Body(...),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = await asyncio.to_thread(
        booking_service.create,
        payload.student_id,
        payload.teacher_id,
        payload.booking_date,
        payload.start_time,
        payload.lesson_ref,
        payload.student_level,
        actor,
    )
    return BookingResponse.model_validate(booking)


@router.get("/student", response_model=List[BookingResponse])
async def list_student_bookings(
    student_id: Optional[str] = Query(None, description="Defaults to the caller"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    include_cancelled: bool = Query(False),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    bookings = await asyncio.to_thread(
        booking_service.list_student_bookings,
        student_id or actor.id,
        start_date,
        end_date,
        include_cancelled,
        actor,
    )
    return [BookingResponse.model_validate(b) for b in bookings]


@router.get("/teacher", response_model=List[BookingResponse])
async def list_teacher_bookings(
    teacher_id: Optional[str] = Query(None, description="Defaults to the caller"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    bookings = await asyncio.to_thread(
        booking_service.list_teacher_bookings,
        teacher_id or actor.id,
        start_date,
        end_date,
        status_filter,
        actor,
    )
    return [BookingResponse.model_validate(b) for b in bookings]


@router.get("/classroom/{classroom_id}", response_model=BookingResponse)
async def get_booking_by_classroom(
    classroom_id: str,
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = await asyncio.to_thread(booking_service.get_by_classroom_id, classroom_id, actor)
    return BookingResponse.model_validate(booking)


# ============================================================================
# SECTION 2: Booking-scoped routes
# ============================================================================


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = await asyncio.to_thread(booking_service.get_booking, booking_id, actor)
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/enter", response_model=BookingResponse)
async def enter_classroom(
    booking_id: str,
    payload: EnterClassroomRequest = Body(...),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = await asyncio.to_thread(
        booking_service.mark_entered,
        booking_id,
        ActorRole(payload.role),
        actor,
    )
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/finish", response_model=BookingResponse)
async def finish_class(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = await asyncio.to_thread(booking_service.mark_finished, booking_id, actor)
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/student-absent", response_model=BookingResponse)
async def mark_student_absent(
    booking_id: str,
    payload: Optional[AbsenceRequest] = Body(None),
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    reason = payload.reason if payload else None
    booking = await asyncio.to_thread(
        booking_service.mark_student_absent, booking_id, reason, actor
    )
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/teacher-absent", response_model=BookingResponse)
async def mark_teacher_absent(
    booking_id: str,
    payload: Optional[AbsenceRequest] = Body(None),
    actor: Actor = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    reason = payload.reason if payload else None
    booking = await asyncio.to_thread(
        booking_service.mark_teacher_absent, booking_id, reason, actor
    )
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = await asyncio.to_thread(booking_service.self_cancel, booking_id, actor)
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/status", response_model=BookingResponse)
async def correct_booking_status(
    booking_id: str,
    payload: StatusCorrectionRequest = Body(...),
    actor: Actor = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = await asyncio.to_thread(
        booking_service.correct_status, booking_id, BookingStatus(payload.status), actor
    )
    return BookingResponse.model_validate(booking)
