"""Tests for the scheduled weekly disbursement."""

from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

from tutorbook.services.payroll_service import DISBURSED, DisbursementResult
from tutorbook.tasks import payroll_tasks


@contextmanager
def _scope():
    yield MagicMock(name="session")


class TestDisbursePreviousWeek:
    def test_disburses_week_containing_given_date(self):
        result = DisbursementResult("t1", "2026-03-02 - 2026-03-08", DISBURSED, Decimal("140.00"), "r1")
        with patch.object(payroll_tasks, "session_scope", _scope), patch.object(
            payroll_tasks, "PayrollService"
        ) as service_cls:
            service_cls.return_value.disburse_all.return_value = [result]
            output = payroll_tasks.disburse_previous_week.run("2026-03-04")

        service_cls.return_value.disburse_all.assert_called_once_with(date(2026, 3, 2), date(2026, 3, 8))
        assert output == [
            {
                "teacher_id": "t1",
                "period": "2026-03-02 - 2026-03-08",
                "status": DISBURSED,
                "amount": "140.00",
                "error": None,
            }
        ]

    def test_defaults_to_last_week(self):
        with patch.object(payroll_tasks, "session_scope", _scope), patch.object(
            payroll_tasks, "PayrollService"
        ) as service_cls, patch.object(payroll_tasks, "platform_today", return_value=date(2026, 3, 10)):
            service_cls.return_value.disburse_all.return_value = []
            payroll_tasks.disburse_previous_week.run()

        service_cls.return_value.disburse_all.assert_called_once_with(date(2026, 3, 2), date(2026, 3, 8))
