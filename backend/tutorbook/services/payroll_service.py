# backend/tutorbook/services/payroll_service.py
"""
Payroll Service

Computes what each teacher is owed for a period from the outcomes of their
bookings, and disburses it by appending to the payment ledger. Summaries are
pure reads and can be recomputed at will; a disbursement happens at most once
per teacher and period label.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.actor import Actor
from ..core.config import settings
from ..core.enums import ActorRole, BookingStatus, NotificationType, PaymentRecordStatus
from ..core.exceptions import (
    AlreadyDisbursedException,
    InvalidRangeException,
    NotAuthorizedException,
)
from ..models.payment_record import PaymentRecord
from ..models.user import Teacher
from ..repositories.factory import RepositoryFactory
from .base import BaseService, Clock
from .identity_directory import IdentityDirectory
from .notification_service import NotificationOutbox, NotificationService
from .payroll_policy import PayrollBreakdown, PayrollPolicy, period_label
from .rate_config_service import RateConfigService, to_money

logger = logging.getLogger(__name__)

DISBURSED = "disbursed"
ALREADY_DISBURSED = "already_disbursed"
NOTHING_DUE = "nothing_due"
ERROR = "error"


@dataclass(frozen=True)
class PayrollSummary:
    teacher_id: str
    teacher_name: str
    period_start: date
    period_end: date
    breakdown: PayrollBreakdown

    @property
    def period_label(self) -> str:
        return period_label(self.period_start, self.period_end)

    @property
    def net(self) -> Decimal:
        return self.breakdown.net


@dataclass(frozen=True)
class DisbursementResult:
    teacher_id: str
    period_label: str
    status: str
    amount: Decimal = Decimal("0.00")
    record_id: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class WeeklyOverviewRow:
    summary: PayrollSummary
    paid: bool

    @property
    def status(self) -> str:
        return "Paid" if self.paid else "Pending"


def week_bounds(any_date: date) -> tuple[date, date]:
    """Monday to Sunday week containing ``any_date``."""
    start = any_date - timedelta(days=any_date.weekday())
    return start, start + timedelta(days=6)


class PayrollService(BaseService):
    def __init__(
        self,
        db: Session,
        notifier: Optional[NotificationService] = None,
        clock: Optional[Clock] = None,
        policy: Optional[PayrollPolicy] = None,
    ):
        super().__init__(db, clock)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.cancellation_repository = RepositoryFactory.create_cancellation_request_repository(db)
        self.payment_repository = RepositoryFactory.create_payment_record_repository(db)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)
        self.directory = IdentityDirectory(db)
        self.rates = RateConfigService(db, clock=self.clock)
        self.policy = policy or PayrollPolicy()
        self.outbox = NotificationOutbox(notifier or NotificationService())

    week_bounds = staticmethod(week_bounds)

    @BaseService.measure_operation("compute_payroll_summary")
    def compute_summary(
        self,
        teacher_id: str,
        start_date: date,
        end_date: date,
        actor: Optional[Actor] = None,
    ) -> PayrollSummary:
        """Read-only; the same store always yields the same summary."""
        self._authorize_teacher(teacher_id, actor)
        self._validate_range(start_date, end_date)
        teacher = self.directory.get_teacher(teacher_id)
        return self._summarize(teacher, start_date, end_date)

    @BaseService.measure_operation("disburse_salary")
    def disburse(
        self,
        teacher_id: str,
        start_date: date,
        end_date: date,
        actor: Optional[Actor] = None,
    ) -> DisbursementResult:
        """
        Pay a teacher for a period.

        Raises:
            AlreadyDisbursedException: the period label was already paid
            InvalidRangeException: malformed range
        """
        self._require_admin(actor)
        self._validate_range(start_date, end_date)
        label = period_label(start_date, end_date)

        try:
            with self.transaction():
                teacher = self.teacher_repository.get_for_update(teacher_id)
                if teacher is None:
                    teacher = self.directory.get_teacher(teacher_id)
                if self.payment_repository.get_by_period(teacher_id, label) is not None:
                    raise AlreadyDisbursedException(teacher_id, label)

                summary = self._summarize(teacher, start_date, end_date)
                amount = summary.net
                if amount <= 0:
                    return DisbursementResult(teacher_id, label, NOTHING_DUE, amount)

                record = self._append_record(teacher, summary)
                self.outbox.add(
                    teacher_id,
                    ActorRole.TEACHER,
                    NotificationType.SALARY,
                    f"Your weekly salary of {settings.currency_symbol}{amount:.2f} for "
                    f"{label} has been credited.",
                )
        except Exception:
            self.outbox.discard()
            raise

        self.outbox.flush()
        self.logger.info(
            "Salary disbursed",
            extra={"teacher_id": teacher_id, "period": label, "amount": str(amount)},
        )
        return DisbursementResult(teacher_id, label, DISBURSED, amount, record_id=record.id)

    @BaseService.measure_operation("disburse_all_salaries")
    def disburse_all(
        self, start_date: date, end_date: date, actor: Optional[Actor] = None
    ) -> List[DisbursementResult]:
        """Disburse every active teacher; one failure never aborts the batch."""
        self._require_admin(actor)
        self._validate_range(start_date, end_date)
        label = period_label(start_date, end_date)
        results: List[DisbursementResult] = []

        for teacher in self.teacher_repository.list_active():
            try:
                results.append(self.disburse(teacher.id, start_date, end_date))
            except AlreadyDisbursedException:
                results.append(DisbursementResult(teacher.id, label, ALREADY_DISBURSED))
            except Exception as exc:
                self.logger.error(
                    "Disbursement failed for teacher %s: %s", teacher.id, exc, exc_info=True
                )
                results.append(DisbursementResult(teacher.id, label, ERROR, error=str(exc)))

        self.logger.info(
            "Batch disbursement finished",
            extra={
                "period": label,
                "teachers": len(results),
                "disbursed": sum(1 for r in results if r.status == DISBURSED),
            },
        )
        return results

    def weekly_overview(self, week_of: date, actor: Optional[Actor] = None) -> List[WeeklyOverviewRow]:
        """Every active teacher's summary for the week, with paid/pending status."""
        self._require_admin(actor)
        start_date, end_date = week_bounds(week_of)
        teachers = self.teacher_repository.list_active()
        paid = self.payment_repository.teachers_paid_for(
            period_label(start_date, end_date), (t.id for t in teachers)
        )
        return [
            WeeklyOverviewRow(self._summarize(teacher, start_date, end_date), teacher.id in paid)
            for teacher in teachers
        ]

    def payment_history(
        self,
        teacher_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        actor: Optional[Actor] = None,
    ) -> List[PaymentRecord]:
        self._authorize_teacher(teacher_id, actor)
        return self.payment_repository.list_for_teacher(teacher_id, start_date, end_date)

    # Helpers

    def _summarize(self, teacher: Teacher, start_date: date, end_date: date) -> PayrollSummary:
        bookings = self.booking_repository.list_for_teacher(teacher.id, start_date, end_date)
        cancelled_ids = [b.id for b in bookings if b.status == BookingStatus.CANCELLED.value]
        approved = self.cancellation_repository.approved_booking_ids(cancelled_ids)
        rate = to_money(teacher.rate) if teacher.rate is not None else self.rates.get_global_rate()
        breakdown = self.policy.evaluate(bookings, rate, approved)
        return PayrollSummary(
            teacher_id=teacher.id,
            teacher_name=teacher.name,
            period_start=start_date,
            period_end=end_date,
            breakdown=breakdown,
        )

    def _append_record(self, teacher: Teacher, summary: PayrollSummary) -> PaymentRecord:
        try:
            return self.payment_repository.append(
                teacher_id=teacher.id,
                period_label=summary.period_label,
                period_start=summary.period_start,
                period_end=summary.period_end,
                issue_date=summary.period_end + timedelta(days=1),
                amount=summary.net,
                payment_method=settings.default_payment_method,
                account=teacher.payment_account or teacher.email or teacher.id,
                status=PaymentRecordStatus.SUCCESS.value,
                remark=(
                    f"{summary.breakdown.completed_classes} completed, "
                    f"{summary.breakdown.student_absent_classes} student absent, "
                    f"{summary.breakdown.teacher_absent_classes} teacher absent"
                ),
            )
        except IntegrityError as exc:
            raise AlreadyDisbursedException(teacher.id, summary.period_label) from exc

    @staticmethod
    def _validate_range(start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise InvalidRangeException(start_date, end_date, "start date is after end date")
        span = (end_date - start_date).days + 1
        if span > settings.payroll_max_range_days:
            raise InvalidRangeException(
                start_date,
                end_date,
                f"range spans {span} days, maximum is {settings.payroll_max_range_days}",
            )

    @staticmethod
    def _authorize_teacher(teacher_id: str, actor: Optional[Actor]) -> None:
        if actor is None or actor.is_admin:
            return
        if not (actor.is_teacher and actor.id == teacher_id):
            raise NotAuthorizedException("You can only view your own payroll")

    @staticmethod
    def _require_admin(actor: Optional[Actor]) -> None:
        if actor is not None and not actor.is_admin:
            raise NotAuthorizedException("Only administrators can manage payroll")
