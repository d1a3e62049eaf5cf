"""Payroll rules: per-class pay, partial pay and deductions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Set

from ..core.config import settings
from ..core.constants import (
    CANCELLATION_PENALTY_TIERS,
    LAST_MINUTE_PENALTY_FRACTION,
    MONEY_QUANTUM,
    STUDENT_ABSENT_PAY_FRACTION,
)
from ..core.enums import BookingStatus
from ..core.timezone_utils import hours_between
from ..models.booking import Booking


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def cancellation_penalty_fraction(hours_before_class: float) -> Decimal:
    """
    Fraction of the rate deducted for a cancellation made this long before class.

    > 72h: 0, (48, 72]: 12.5%, [24, 48]: 25%, (3, 24): 100%, 3h or less: 300%.
    Exactly 24h counts as a day's notice and takes the 25% band.
    """
    for lower_bound, inclusive, fraction in CANCELLATION_PENALTY_TIERS:
        if hours_before_class > lower_bound or (inclusive and hours_before_class == lower_bound):
            return fraction
    return LAST_MINUTE_PENALTY_FRACTION


@dataclass(frozen=True)
class CancellationPenalty:
    booking_id: str
    hours_before_class: float
    fraction: Decimal
    amount: Decimal


@dataclass(frozen=True)
class PayrollBreakdown:
    rate: Decimal
    completed_classes: int = 0
    student_absent_classes: int = 0
    teacher_absent_classes: int = 0
    cancelled_classes: int = 0
    late_minutes: int = 0
    completed_pay: Decimal = Decimal("0.00")
    student_absent_pay: Decimal = Decimal("0.00")
    late_deduction: Decimal = Decimal("0.00")
    cancellation_deduction: Decimal = Decimal("0.00")
    teacher_absent_deduction: Decimal = Decimal("0.00")
    penalties: List[CancellationPenalty] = field(default_factory=list)

    @property
    def gross(self) -> Decimal:
        return self.completed_pay + self.student_absent_pay

    @property
    def total_deductions(self) -> Decimal:
        return self.late_deduction + self.cancellation_deduction + self.teacher_absent_deduction

    @property
    def net(self) -> Decimal:
        """Net payable, never negative."""
        return max(Decimal("0.00"), quantize_money(self.gross - self.total_deductions))


class PayrollPolicy:
    """Turns a teacher's bookings in a period into a payroll breakdown."""

    def __init__(self, late_deduction_rate: Optional[float] = None):
        rate = settings.late_deduction_rate if late_deduction_rate is None else late_deduction_rate
        self.late_deduction_rate = Decimal(str(rate))

    def evaluate(
        self,
        bookings: Iterable[Booking],
        rate: Decimal,
        approved_cancellations: Set[str],
    ) -> PayrollBreakdown:
        completed = student_absent = teacher_absent = 0
        late_minutes = 0
        penalties: List[CancellationPenalty] = []

        for booking in bookings:
            status = booking.status
            if status == BookingStatus.COMPLETED.value:
                completed += 1
                if booking.teacher_entered and not booking.student_entered:
                    student_absent += 1
            elif status == BookingStatus.ABSENT.value:
                if booking.teacher_entered:
                    student_absent += 1
                else:
                    teacher_absent += 1
            elif status == BookingStatus.CANCELLED.value and booking.id in approved_cancellations:
                penalty = self._cancellation_penalty(booking, rate)
                if penalty is not None:
                    penalties.append(penalty)

            if (booking.late_minutes or 0) > 0:
                late_minutes += int(booking.late_minutes)

        return PayrollBreakdown(
            rate=rate,
            completed_classes=completed,
            student_absent_classes=student_absent,
            teacher_absent_classes=teacher_absent,
            cancelled_classes=len(penalties),
            late_minutes=late_minutes,
            completed_pay=quantize_money(rate * completed),
            student_absent_pay=quantize_money(rate * STUDENT_ABSENT_PAY_FRACTION * student_absent),
            late_deduction=quantize_money(rate * self.late_deduction_rate * late_minutes),
            cancellation_deduction=quantize_money(sum((p.amount for p in penalties), Decimal("0"))),
            teacher_absent_deduction=quantize_money(rate * teacher_absent),
            penalties=penalties,
        )

    @staticmethod
    def _cancellation_penalty(booking: Booking, rate: Decimal) -> Optional[CancellationPenalty]:
        if booking.cancellation_time is None:
            return None
        hours = hours_between(booking.cancellation_time, booking.scheduled_start)
        fraction = cancellation_penalty_fraction(hours)
        return CancellationPenalty(
            booking_id=booking.id,
            hours_before_class=round(hours, 2),
            fraction=fraction,
            amount=quantize_money(rate * fraction),
        )


def period_label(start: date, end: date) -> str:
    """``YYYY-MM-DD - YYYY-MM-DD``; also the disbursement idempotency key."""
    return f"{start.isoformat()} - {end.isoformat()}"
