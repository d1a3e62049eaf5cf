"""
Tests for PayrollService: summaries, disbursement and the weekly overview.

The standard week is Monday 2026-03-02 to Sunday 2026-03-08; the teacher
has no individual rate, so the global 100.00 applies.
"""

from datetime import date, time, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from tutorbook.core.actor import Actor
from tutorbook.core.enums import (
    ActorRole,
    BookingStatus,
    CancellationRequestStatus,
    NotificationType,
)
from tutorbook.core.exceptions import (
    AlreadyDisbursedException,
    InvalidRangeException,
    NotAuthorizedException,
)
from tutorbook.core.timezone_utils import scheduled_start_utc
from tutorbook.models import Booking, CancellationRequest, PaymentRecord
from tutorbook.services.payroll_service import (
    ALREADY_DISBURSED,
    DISBURSED,
    ERROR,
    NOTHING_DUE,
    PayrollService,
    week_bounds,
)

WEEK_START = date(2026, 3, 2)
WEEK_END = date(2026, 3, 8)


@pytest.fixture
def payroll_service(db, notifier, clock):
    return PayrollService(db, notifier=notifier, clock=clock)


@pytest.fixture
def add_booking(db, teacher, student):
    counter = {"n": 0}

    def _add(status, day=0, hour=9, teacher_id=None, **fields):
        counter["n"] += 1
        booking_date = WEEK_START + timedelta(days=day)
        booking = Booking(
            student_id=student.id,
            teacher_id=teacher_id or teacher.id,
            booking_date=booking_date,
            start_time=time(hour, 0),
            lesson_ref="Unit 1",
            student_level="B1",
            classroom_id=f"room-{counter['n']}",
            status=status.value,
            **fields,
        )
        db.add(booking)
        db.commit()
        return booking

    return _add


@pytest.fixture
def scenario_week(db, add_booking, teacher, student):
    """Three completed (one 10 minutes late), one late cancellation, two absences."""
    add_booking(BookingStatus.COMPLETED, day=0, teacher_entered=True, student_entered=True)
    add_booking(BookingStatus.COMPLETED, day=1, teacher_entered=True, student_entered=True)
    add_booking(
        BookingStatus.COMPLETED, day=2, teacher_entered=True, student_entered=True, late_minutes=10
    )
    cancelled_date = WEEK_START + timedelta(days=3)
    cancelled = add_booking(
        BookingStatus.CANCELLED,
        day=3,
        cancellation_time=scheduled_start_utc(cancelled_date, time(9, 0)) - timedelta(hours=10),
    )
    db.add(
        CancellationRequest(
            booking_id=cancelled.id,
            requester_role=ActorRole.TEACHER.value,
            requester_id=teacher.id,
            reason="Medical appointment that cannot be moved",
            status=CancellationRequestStatus.APPROVED.value,
        )
    )
    add_booking(BookingStatus.ABSENT, day=4, teacher_entered=False, absent_type="teacher")
    add_booking(BookingStatus.ABSENT, day=5, teacher_entered=True, absent_type="student")
    # Outside the week, must not count
    add_booking(BookingStatus.COMPLETED, day=7, teacher_entered=True, student_entered=True)
    db.commit()


class TestWeekBounds:
    @pytest.mark.parametrize("any_day", [WEEK_START, date(2026, 3, 5), WEEK_END])
    def test_monday_to_sunday(self, any_day):
        assert week_bounds(any_day) == (WEEK_START, WEEK_END)


class TestComputeSummary:
    def test_scenario_week_nets_140(self, payroll_service, scenario_week, teacher):
        summary = payroll_service.compute_summary(teacher.id, WEEK_START, WEEK_END)

        assert summary.period_label == "2026-03-02 - 2026-03-08"
        assert summary.teacher_name == "Maria Santos"
        assert summary.breakdown.rate == Decimal("100.00")
        assert summary.breakdown.completed_classes == 3
        assert summary.breakdown.cancelled_classes == 1
        assert summary.net == Decimal("140.00")

    def test_summary_is_stable_under_requery(self, payroll_service, scenario_week, teacher):
        first = payroll_service.compute_summary(teacher.id, WEEK_START, WEEK_END)
        second = payroll_service.compute_summary(teacher.id, WEEK_START, WEEK_END)

        assert first == second

    def test_individual_rate_wins(self, payroll_service, add_booking, other_teacher):
        add_booking(
            BookingStatus.COMPLETED,
            teacher_id=other_teacher.id,
            teacher_entered=True,
            student_entered=True,
        )

        summary = payroll_service.compute_summary(other_teacher.id, WEEK_START, WEEK_END)

        assert summary.breakdown.rate == Decimal("120.00")
        assert summary.net == Decimal("120.00")

    def test_inverted_range(self, payroll_service, teacher):
        with pytest.raises(InvalidRangeException):
            payroll_service.compute_summary(teacher.id, WEEK_END, WEEK_START)

    def test_range_too_long(self, payroll_service, teacher):
        with pytest.raises(InvalidRangeException):
            payroll_service.compute_summary(teacher.id, WEEK_START, WEEK_START + timedelta(days=31))

    def test_teacher_sees_only_own_payroll(self, payroll_service, teacher, other_teacher):
        actor = Actor(role=ActorRole.TEACHER, id=other_teacher.id)
        with pytest.raises(NotAuthorizedException):
            payroll_service.compute_summary(teacher.id, WEEK_START, WEEK_END, actor=actor)


class TestDisburse:
    def test_disburse_appends_record_and_notifies(
        self, payroll_service, scenario_week, db, teacher, admin_actor, notifications
    ):
        result = payroll_service.disburse(teacher.id, WEEK_START, WEEK_END, admin_actor)

        assert result.status == DISBURSED
        assert result.amount == Decimal("140.00")
        record = db.query(PaymentRecord).one()
        assert record.id == result.record_id
        assert record.period_label == "2026-03-02 - 2026-03-08"
        assert record.issue_date == date(2026, 3, 9)
        assert Decimal(record.amount) == Decimal("140.00")
        assert record.account == "PH-ACCT-001"

        salary = [n for n in notifications(teacher.id) if n.type == NotificationType.SALARY.value]
        assert [n.message for n in salary] == [
            "Your weekly salary of ₱140.00 for 2026-03-02 - 2026-03-08 has been credited."
        ]

    def test_second_disbursement_is_rejected(self, payroll_service, scenario_week, db, teacher):
        payroll_service.disburse(teacher.id, WEEK_START, WEEK_END)

        with pytest.raises(AlreadyDisbursedException):
            payroll_service.disburse(teacher.id, WEEK_START, WEEK_END)

        assert db.query(PaymentRecord).count() == 1

    def test_nothing_due_writes_no_record(self, payroll_service, db, teacher):
        result = payroll_service.disburse(teacher.id, WEEK_START, WEEK_END)

        assert result.status == NOTHING_DUE
        assert result.amount == Decimal("0.00")
        assert db.query(PaymentRecord).count() == 0

    def test_only_admins_disburse(self, payroll_service, teacher, teacher_actor):
        with pytest.raises(NotAuthorizedException):
            payroll_service.disburse(teacher.id, WEEK_START, WEEK_END, teacher_actor)

    def test_account_falls_back_to_email(self, payroll_service, add_booking, other_teacher, db):
        add_booking(
            BookingStatus.COMPLETED,
            teacher_id=other_teacher.id,
            teacher_entered=True,
            student_entered=True,
        )

        payroll_service.disburse(other_teacher.id, WEEK_START, WEEK_END)

        assert db.query(PaymentRecord).one().account == "jose.reyes@example.com"


class TestDisburseAll:
    def test_batch_reports_per_teacher_status(
        self, payroll_service, scenario_week, teacher, other_teacher
    ):
        results = {r.teacher_id: r for r in payroll_service.disburse_all(WEEK_START, WEEK_END)}

        assert results[teacher.id].status == DISBURSED
        assert results[teacher.id].amount == Decimal("140.00")
        assert results[other_teacher.id].status == NOTHING_DUE

        again = {r.teacher_id: r.status for r in payroll_service.disburse_all(WEEK_START, WEEK_END)}
        assert again == {teacher.id: ALREADY_DISBURSED, other_teacher.id: NOTHING_DUE}

    def test_one_failure_does_not_abort_batch(
        self, payroll_service, scenario_week, teacher, other_teacher
    ):
        real_disburse = payroll_service.disburse

        def flaky(teacher_id, start_date, end_date, actor=None):
            if teacher_id == other_teacher.id:
                raise RuntimeError("ledger offline")
            return real_disburse(teacher_id, start_date, end_date, actor)

        with patch.object(payroll_service, "disburse", side_effect=flaky):
            results = {r.teacher_id: r for r in payroll_service.disburse_all(WEEK_START, WEEK_END)}

        assert results[teacher.id].status == DISBURSED
        assert results[other_teacher.id].status == ERROR
        assert results[other_teacher.id].error == "ledger offline"

    def test_inactive_teachers_are_skipped(self, payroll_service, db, teacher, other_teacher):
        other_teacher.is_active = False
        db.commit()

        results = payroll_service.disburse_all(WEEK_START, WEEK_END)

        assert [r.teacher_id for r in results] == [teacher.id]


class TestOverviewAndHistory:
    def test_weekly_overview_marks_paid(
        self, payroll_service, scenario_week, teacher, other_teacher
    ):
        payroll_service.disburse(teacher.id, WEEK_START, WEEK_END)

        rows = {row.summary.teacher_id: row for row in payroll_service.weekly_overview(date(2026, 3, 4))}

        assert rows[teacher.id].status == "Paid"
        assert rows[teacher.id].summary.net == Decimal("140.00")
        assert rows[other_teacher.id].status == "Pending"

    def test_payment_history(self, payroll_service, scenario_week, teacher, teacher_actor):
        payroll_service.disburse(teacher.id, WEEK_START, WEEK_END)

        history = payroll_service.payment_history(teacher.id, actor=teacher_actor)

        assert [r.period_label for r in history] == ["2026-03-02 - 2026-03-08"]
