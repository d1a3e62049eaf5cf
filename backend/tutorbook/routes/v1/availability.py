# backend/tutorbook/routes/v1/availability.py
"""
Availability routes - API v1

Endpoints:
    POST /teachers/{teacher_id}/slots - Publish a week of slots
    DELETE /teachers/{teacher_id}/slots - Withdraw slots
    GET /teachers/{teacher_id}/slots - List a teacher's slots
    GET /availability/teachers - Teachers open at a date and time
"""

import asyncio
from datetime import date, time
import logging
from typing import List

from fastapi import APIRouter, Body, Depends, Query

from ...api.dependencies import get_current_actor, get_slot_registry
from ...core.actor import Actor
from ...schemas.slot import (
    AvailableTeacherResponse,
    PublishSlotsRequest,
    PublishSlotsResponse,
    SlotResponse,
    WithdrawSlotsRequest,
    WithdrawSlotsResponse,
)
from ...services.slot_registry import SlotRegistryService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


@router.post("/teachers/{teacher_id}/slots", response_model=PublishSlotsResponse)
async def publish_slots(
    teacher_id: str,
    payload: PublishSlotsRequest = Body(...),
    actor: Actor = Depends(get_current_actor),
    slot_registry: SlotRegistryService = Depends(get_slot_registry),
) -> PublishSlotsResponse:
    result = await asyncio.to_thread(
        slot_registry.publish,
        teacher_id,
        [(slot.slot_date, slot.start_time) for slot in payload.slots],
        actor,
    )
    return PublishSlotsResponse.model_validate(result)


@router.delete("/teachers/{teacher_id}/slots", response_model=WithdrawSlotsResponse)
async def withdraw_slots(
    teacher_id: str,
    payload: WithdrawSlotsRequest = Body(...),
    actor: Actor = Depends(get_current_actor),
    slot_registry: SlotRegistryService = Depends(get_slot_registry),
) -> WithdrawSlotsResponse:
    deleted = await asyncio.to_thread(
        slot_registry.withdraw,
        teacher_id,
        [(slot.slot_date, slot.start_time) for slot in payload.slots],
        actor,
    )
    return WithdrawSlotsResponse(deleted=deleted)


@router.get("/teachers/{teacher_id}/slots", response_model=List[SlotResponse])
async def list_teacher_slots(
    teacher_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    available_only: bool = Query(False),
    actor: Actor = Depends(get_current_actor),
    slot_registry: SlotRegistryService = Depends(get_slot_registry),
) -> List[SlotResponse]:
    slots = await asyncio.to_thread(
        slot_registry.list_teacher_slots, teacher_id, start_date, end_date, available_only
    )
    return [SlotResponse.model_validate(slot) for slot in slots]


@router.get("/availability/teachers", response_model=List[AvailableTeacherResponse])
async def find_available_teachers(
    slot_date: date = Query(..., alias="date", description="Class date"),
    start_time: time = Query(..., alias="time", description="Class start time"),
    actor: Actor = Depends(get_current_actor),
    slot_registry: SlotRegistryService = Depends(get_slot_registry),
) -> List[AvailableTeacherResponse]:
    teachers = await asyncio.to_thread(
        slot_registry.find_available_teachers, slot_date, start_time
    )
    return [AvailableTeacherResponse(id=t.id, name=t.name) for t in teachers]
