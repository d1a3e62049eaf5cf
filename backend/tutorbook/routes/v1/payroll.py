# backend/tutorbook/routes/v1/payroll.py
"""
Payroll routes - API v1

Endpoints:
    GET /teachers/{teacher_id}/summary - Net payable for a date range
    GET /teachers/{teacher_id}/payments - Payment history, newest first
    GET /weekly - Every teacher's week with paid/pending status (admin)
    POST /teachers/{teacher_id}/disburse - Pay one teacher (admin)
    POST /disburse - Pay every active teacher (admin)
    GET /rates/global, PUT /rates/global - Global per-class rate
    PUT /rates/teachers/{teacher_id} - Individual rate (admin)
"""

import asyncio
from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from ...api.dependencies import (
    get_current_actor,
    get_payroll_service,
    get_rate_config_service,
    require_admin,
)
from ...core.actor import Actor
from ...schemas.payroll import (
    DisbursementRequest,
    DisbursementResponse,
    PaymentRecordResponse,
    PayrollSummaryResponse,
    RateResponse,
    RateUpdate,
    WeeklyOverviewEntry,
)
from ...services.payroll_service import PayrollService
from ...services.rate_config_service import RateConfigService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payroll-v1"])


@router.get("/teachers/{teacher_id}/summary", response_model=PayrollSummaryResponse)
async def get_payroll_summary(
    teacher_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    actor: Actor = Depends(get_current_actor),
    payroll_service: PayrollService = Depends(get_payroll_service),
) -> PayrollSummaryResponse:
    summary = await asyncio.to_thread(
        payroll_service.compute_summary, teacher_id, start_date, end_date, actor
    )
    return PayrollSummaryResponse.from_summary(summary)


@router.get("/teachers/{teacher_id}/payments", response_model=List[PaymentRecordResponse])
async def get_payment_history(
    teacher_id: str,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    actor: Actor = Depends(get_current_actor),
    payroll_service: PayrollService = Depends(get_payroll_service),
) -> List[PaymentRecordResponse]:
    records = await asyncio.to_thread(
        payroll_service.payment_history, teacher_id, start_date, end_date, actor
    )
    return [PaymentRecordResponse.model_validate(r) for r in records]


@router.get("/weekly", response_model=List[WeeklyOverviewEntry])
async def get_weekly_overview(
    week_of: date = Query(..., description="Any date inside the week"),
    actor: Actor = Depends(require_admin),
    payroll_service: PayrollService = Depends(get_payroll_service),
) -> List[WeeklyOverviewEntry]:
    rows = await asyncio.to_thread(payroll_service.weekly_overview, week_of, actor)
    return [WeeklyOverviewEntry.from_row(row) for row in rows]


@router.post("/teachers/{teacher_id}/disburse", response_model=DisbursementResponse)
async def disburse_teacher(
    teacher_id: str,
    payload: DisbursementRequest = Body(...),
    actor: Actor = Depends(require_admin),
    payroll_service: PayrollService = Depends(get_payroll_service),
) -> DisbursementResponse:
    result = await asyncio.to_thread(
        payroll_service.disburse, teacher_id, payload.start_date, payload.end_date, actor
    )
    return DisbursementResponse.from_result(result)


@router.post("/disburse", response_model=List[DisbursementResponse])
async def disburse_all(
    payload: DisbursementRequest = Body(...),
    actor: Actor = Depends(require_admin),
    payroll_service: PayrollService = Depends(get_payroll_service),
) -> List[DisbursementResponse]:
    results = await asyncio.to_thread(
        payroll_service.disburse_all, payload.start_date, payload.end_date, actor
    )
    return [DisbursementResponse.from_result(r) for r in results]


@router.get("/rates/global", response_model=RateResponse)
async def get_global_rate(
    actor: Actor = Depends(get_current_actor),
    rate_service: RateConfigService = Depends(get_rate_config_service),
) -> RateResponse:
    rate = await asyncio.to_thread(rate_service.get_global_rate)
    return RateResponse(rate=rate)


@router.put("/rates/global", response_model=RateResponse)
async def set_global_rate(
    payload: RateUpdate = Body(...),
    actor: Actor = Depends(require_admin),
    rate_service: RateConfigService = Depends(get_rate_config_service),
) -> RateResponse:
    rate = await asyncio.to_thread(rate_service.set_global_rate, payload.rate, actor)
    return RateResponse(rate=rate)


@router.put("/rates/teachers/{teacher_id}", response_model=RateResponse)
async def set_teacher_rate(
    teacher_id: str,
    payload: RateUpdate = Body(...),
    actor: Actor = Depends(require_admin),
    rate_service: RateConfigService = Depends(get_rate_config_service),
) -> RateResponse:
    rate = await asyncio.to_thread(rate_service.set_teacher_rate, teacher_id, payload.rate, actor)
    return RateResponse(rate=rate, teacher_id=teacher_id)
