# backend/tutorbook/tasks/beat_schedule.py
"""
Celery Beat schedule configuration.

The attendance check runs on a fixed interval and expires before the next
tick so that a backlog never replays stale checks.
"""

from datetime import timedelta
from typing import Any

from celery.schedules import crontab

from ..core.config import settings


def get_beat_schedule(environment: str = "production") -> dict[str, dict[str, Any]]:
    """
    Get the beat schedule for the specified environment.

    Args:
        environment: The environment name (production, staging, development)

    Returns:
        Mapping of task name to Celery beat configuration dict
    """
    interval = settings.attendance_check_interval_seconds
    schedule: dict[str, dict[str, Any]] = {
        "check-absent-bookings": {
            "task": "tutorbook.tasks.attendance.check_absent_bookings",
            "schedule": timedelta(seconds=interval),
            "options": {
                "queue": "attendance" if environment == "production" else "celery",
                "expires": max(1, interval - 5),
            },
        },
    }
    if settings.auto_disbursement_enabled:
        schedule["disburse-previous-week"] = {
            "task": "tutorbook.tasks.payroll.disburse_previous_week",
            # Monday 03:00 platform time; the week just ended is settled by then
            "schedule": crontab(hour=3, minute=0, day_of_week=1),
            "options": {"queue": "payroll" if environment == "production" else "celery"},
        }
    return schedule
