# backend/tutorbook/tasks/celery_app.py
"""
Celery application configuration.

This module sets up the Celery app with Redis as the broker and backend,
configures task serialization and timezone, and installs the beat schedule.
"""

import logging
import os
from typing import Any, Dict, Type, cast

from celery import Celery, Task
from celery.signals import setup_logging

from ..core.config import settings


def create_celery_app() -> Celery:
    """
    Create and configure the Celery application.

    Returns:
        Celery: Configured Celery application instance
    """
    # Priority: CELERY_BROKER_URL -> REDIS_URL -> settings.redis_url
    broker_url = os.getenv("CELERY_BROKER_URL") or os.getenv("REDIS_URL") or settings.redis_url
    # Ensure Redis URL includes database number
    if not any(broker_url.endswith(f"/{i}") for i in range(16)):
        broker_url = f"{broker_url}/0"

    result_backend = os.getenv("CELERY_RESULT_BACKEND") or broker_url

    celery_app = Celery("tutorbook", broker=broker_url, backend=result_backend)

    celery_app.conf.update(
        {
            # Task settings
            "task_serializer": "json",
            "accept_content": ["json"],
            "result_serializer": "json",
            "timezone": settings.platform_timezone,
            "enable_utc": True,
            # Worker settings
            "worker_prefetch_multiplier": 1,
            "worker_max_tasks_per_child": 1000,
            # Task execution settings
            "task_soft_time_limit": 240,
            "task_time_limit": 300,
            "task_acks_late": True,
            "task_reject_on_worker_lost": True,
            # Error handling
            "task_default_retry_delay": 60,
            "task_max_retries": 3,
            "beat_schedule_filename": "celerybeat-schedule",
            "worker_hijack_root_logger": False,
            "worker_redirect_stdouts": True,
            "worker_redirect_stdouts_level": "INFO",
        }
    )

    # Force import of task modules so tasks are registered even if autodiscovery fails
    celery_app.conf.imports = tuple(
        set(celery_app.conf.imports or ())
        | {"tutorbook.tasks.attendance_tasks", "tutorbook.tasks.payroll_tasks"}
    )

    celery_app.conf.task_routes = {
        "tutorbook.tasks.attendance.*": {"queue": "attendance"},
        "tutorbook.tasks.payroll.*": {"queue": "payroll"},
    }

    from .beat_schedule import get_beat_schedule

    celery_app.conf.beat_schedule = get_beat_schedule(settings.environment)

    return celery_app


# Disable Celery's default logging configuration
@setup_logging.connect  # type: ignore[misc]
def config_loggers(*args: Any, **kwargs: Any) -> None:
    """Configure logging to integrate with the application's logging setup."""
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


celery_app = create_celery_app()


class BaseTask(Task):  # type: ignore[misc]
    """Base task with error logging."""

    def on_failure(self, exc: Exception, task_id: str, args: Any, kwargs: Any, einfo: Any) -> None:
        """Log task failures."""
        logger = logging.getLogger(__name__)
        logger.error(
            f"Task {self.name}[{task_id}] failed with exception: {exc}",
            exc_info=True,
            extra={
                "task_id": task_id,
                "task_name": self.name,
                "task_args": str(args),
                "task_kwargs": str(kwargs),
            },
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)

    def on_retry(self, exc: Exception, task_id: str, args: Any, kwargs: Any, einfo: Any) -> None:
        """Log task retries."""
        logger = logging.getLogger(__name__)
        logger.warning(
            f"Task {self.name}[{task_id}] retry {self.request.retries} due to: {exc}",
            extra={
                "task_id": task_id,
                "task_name": self.name,
                "retry_count": self.request.retries,
            },
        )
        super().on_retry(exc, task_id, args, kwargs, einfo)


# Register BaseTask as default task base for the app
celery_app.Task = cast(Type[Task], BaseTask)


@celery_app.task(name="tutorbook.tasks.health_check")  # type: ignore[misc]
def health_check() -> Dict[str, str]:
    """Simple health check task to verify Celery is working."""
    from datetime import datetime, timezone

    current_task = celery_app.current_task
    return {
        "status": "healthy",
        "worker": current_task.request.hostname if current_task else "unknown",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
