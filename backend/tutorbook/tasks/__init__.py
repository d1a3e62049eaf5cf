"""
Background tasks.

Importing this package exposes the configured Celery application.
"""

from .celery_app import celery_app

__all__ = ["celery_app"]
