# backend/tutorbook/tasks/attendance_tasks.py
"""
Attendance monitor task.

Runs the attendance scan once per beat tick. Overlapping ticks are prevented
by a Redis lock with a TTL shorter than the tick interval; the task's time
limits sit below that TTL.
"""

from typing import Any, Dict

from celery.utils.log import get_task_logger

from ..core.config import settings
from ..core.task_lock import task_lock
from ..database import session_scope
from ..services.attendance_monitor import AttendanceMonitorService
from .celery_app import celery_app

logger = get_task_logger(__name__)

ATTENDANCE_LOCK_KEY = "attendance-check"

# A tick is killed before its lock can expire, so it never overlaps the next one.
ATTENDANCE_TIME_LIMIT = max(settings.attendance_lock_ttl_seconds - 5, 2)
ATTENDANCE_SOFT_TIME_LIMIT = max(ATTENDANCE_TIME_LIMIT - 5, 1)


def run_attendance_check() -> Dict[str, Any]:
    """Execute one scan under the tick lock."""
    with task_lock(ATTENDANCE_LOCK_KEY, ttl_s=settings.attendance_lock_ttl_seconds) as acquired:
        if not acquired:
            logger.info("Attendance check already running, skipping this tick")
            return {"skipped": True}
        with session_scope() as db:
            summary = AttendanceMonitorService(db).run_check()
        return summary.to_dict()


@celery_app.task(
    name="tutorbook.tasks.attendance.check_absent_bookings",
    max_retries=0,
    soft_time_limit=ATTENDANCE_SOFT_TIME_LIMIT,
    time_limit=ATTENDANCE_TIME_LIMIT,
)
def check_absent_bookings() -> Dict[str, Any]:
    result = run_attendance_check()
    logger.debug("Attendance tick result: %s", result)
    return result
