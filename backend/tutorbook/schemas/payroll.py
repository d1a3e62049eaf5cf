# backend/tutorbook/schemas/payroll.py
"""Payroll summary, disbursement and rate schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from ..services.payroll_service import DisbursementResult, PayrollSummary, WeeklyOverviewRow
from ._strict_base import StrictModel, StrictRequestModel


class CancellationPenaltyResponse(StrictModel):
    booking_id: str
    hours_before_class: float
    fraction: Decimal
    amount: Decimal


class PayrollSummaryResponse(StrictModel):
    teacher_id: str
    teacher_name: str
    period_start: date
    period_end: date
    period_label: str
    rate: Decimal
    completed_classes: int
    student_absent_classes: int
    teacher_absent_classes: int
    cancelled_classes: int
    late_minutes: int
    completed_pay: Decimal
    student_absent_pay: Decimal
    late_deduction: Decimal
    cancellation_deduction: Decimal
    teacher_absent_deduction: Decimal
    net: Decimal
    penalties: List[CancellationPenaltyResponse] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: PayrollSummary) -> "PayrollSummaryResponse":
        b = summary.breakdown
        return cls(
            teacher_id=summary.teacher_id,
            teacher_name=summary.teacher_name,
            period_start=summary.period_start,
            period_end=summary.period_end,
            period_label=summary.period_label,
            rate=b.rate,
            completed_classes=b.completed_classes,
            student_absent_classes=b.student_absent_classes,
            teacher_absent_classes=b.teacher_absent_classes,
            cancelled_classes=b.cancelled_classes,
            late_minutes=b.late_minutes,
            completed_pay=b.completed_pay,
            student_absent_pay=b.student_absent_pay,
            late_deduction=b.late_deduction,
            cancellation_deduction=b.cancellation_deduction,
            teacher_absent_deduction=b.teacher_absent_deduction,
            net=b.net,
            penalties=[CancellationPenaltyResponse.model_validate(p) for p in b.penalties],
        )


class WeeklyOverviewEntry(StrictModel):
    summary: PayrollSummaryResponse
    status: str

    @classmethod
    def from_row(cls, row: WeeklyOverviewRow) -> "WeeklyOverviewEntry":
        return cls(summary=PayrollSummaryResponse.from_summary(row.summary), status=row.status)


class DisbursementRequest(StrictRequestModel):
    start_date: date
    end_date: date


class DisbursementResponse(StrictModel):
    teacher_id: str
    period_label: str
    status: str
    amount: Decimal
    record_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: DisbursementResult) -> "DisbursementResponse":
        return cls.model_validate(result)


class PaymentRecordResponse(StrictModel):
    id: str
    teacher_id: str
    period_label: str
    period_start: date
    period_end: date
    issue_date: date
    amount: Decimal
    payment_method: str
    account: str
    status: str
    remark: Optional[str] = None
    created_at: Optional[datetime] = None


class RateUpdate(StrictRequestModel):
    rate: Optional[Decimal] = Field(None, gt=0)


class RateResponse(StrictModel):
    rate: Optional[Decimal] = None
    teacher_id: Optional[str] = None
