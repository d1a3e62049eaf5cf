# backend/tutorbook/services/base.py
"""
Base Service Pattern

Provides common functionality for all service classes including:
- Transaction management
- Logging
- An injectable clock
- Slow-operation logging
"""

import asyncio
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ServiceException
from ..core.timezone_utils import utc_now

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """
    Base class for all service layer components.

    Provides common patterns for:
    - Database session management
    - Logging
    - Transaction handling
    - Slow-operation logging
    """

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        """
        Initialize base service.

        Args:
            db: Database session
            clock: Callable returning the current aware UTC datetime
        """
        self.db = db
        self.clock: Clock = clock or utc_now
        self.logger = logging.getLogger(self.__class__.__name__)

    def now(self) -> datetime:
        return self.clock()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Usage:
            with self.transaction():
                # Do multiple operations
                self.db.add(entity)
                # Note: commit is handled automatically
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            self._discard_outbox()
            raise ServiceException(f"Database operation failed: {str(e)}")
        except Exception as e:
            self.logger.debug(f"Rolling back transaction: {type(e).__name__}: {e}")
            self.db.rollback()
            self._discard_outbox()
            raise

    def _discard_outbox(self) -> None:
        """Drop notifications queued for a unit of work that did not commit."""
        outbox = getattr(self, "outbox", None)
        if outbox is not None:
            outbox.discard()

    @staticmethod
    def measure_operation(operation_name: str) -> Callable:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("create_booking")
            def create_booking(self, data):
                # Method implementation
        """

        F = TypeVar("F", bound=Callable[..., Any])

        def decorator(func: F) -> F:
            if not asyncio.iscoroutinefunction(func):

                @wraps(func)
                def wrapper(self, *args, **kwargs):
                    start_time = time.time()
                    success = False
                    try:
                        result = func(self, *args, **kwargs)
                        success = True
                        return result
                    finally:
                        elapsed = time.time() - start_time
                        if hasattr(self, "_record_metric"):
                            self._record_metric(operation_name, elapsed, success)

                return cast(F, wrapper)

            @wraps(func)
            async def async_wrapper(self, *args, **kwargs):
                start_time = time.time()
                success = False
                try:
                    result = await func(self, *args, **kwargs)
                    success = True
                    return result
                finally:
                    elapsed = time.time() - start_time
                    if hasattr(self, "_record_metric"):
                        self._record_metric(operation_name, elapsed, success)

            return cast(F, async_wrapper)

        return decorator

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        if not success:
            self.logger.debug("Operation %s failed after %.3fs", operation, elapsed)
        # Only log if it's actually slow
        if elapsed > SLOW_OPERATION_SECONDS:
            self.logger.warning(f"Slow operation detected: {operation} took {elapsed:.2f}s")
