"""Scheduled payroll disbursement."""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from celery.utils.log import get_task_logger

from ..core.timezone_utils import platform_today
from ..database import session_scope
from ..services.payroll_service import PayrollService, week_bounds
from .celery_app import celery_app

logger = get_task_logger(__name__)


def disburse_week(week_of: date) -> List[Dict[str, Any]]:
    start_date, end_date = week_bounds(week_of)
    with session_scope() as db:
        results = PayrollService(db).disburse_all(start_date, end_date)
    return [
        {
            "teacher_id": r.teacher_id,
            "period": r.period_label,
            "status": r.status,
            "amount": str(r.amount),
            "error": r.error,
        }
        for r in results
    ]


@celery_app.task(name="tutorbook.tasks.payroll.disburse_previous_week")
def disburse_previous_week(week_of: Optional[str] = None) -> List[Dict[str, Any]]:
    """Disburse the week before today, or the week containing ``week_of`` (ISO date)."""
    target = date.fromisoformat(week_of) if week_of else platform_today() - timedelta(days=7)
    results = disburse_week(target)
    logger.info(
        "Weekly disbursement finished for week of %s: %s teachers", target.isoformat(), len(results)
    )
    return results
