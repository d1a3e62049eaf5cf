# backend/tutorbook/services/notification_service.py
"""
Notification emitter.

Notifications are fire-and-forget: they are written in their own session
after the triggering transaction has committed, and a failure to write one
is logged without affecting the caller.
"""

from dataclasses import dataclass
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import sessionmaker

from ..core.enums import ActorRole, NotificationType
from ..database import SessionLocal, session_scope
from ..repositories.factory import RepositoryFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingNotification:
    recipient_id: str
    recipient_role: ActorRole
    type: NotificationType
    message: str


class NotificationService:
    """Writes in-app notifications outside the caller's unit of work."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal
        self.logger = logging.getLogger(self.__class__.__name__)

    def notify(
        self,
        recipient_id: str,
        recipient_role: ActorRole,
        type: NotificationType,
        message: str,
    ) -> bool:
        """Persist a single notification. Returns False if it could not be written."""
        return self.emit([PendingNotification(recipient_id, recipient_role, type, message)]) == 1

    def emit(self, notifications: Iterable[PendingNotification]) -> int:
        """Persist a batch; each notification is attempted independently."""
        written = 0
        for item in notifications:
            try:
                with session_scope(self.session_factory) as db:
                    RepositoryFactory.create_notification_repository(db).create(
                        recipient_id=item.recipient_id,
                        recipient_role=item.recipient_role.value,
                        type=item.type.value,
                        message=item.message,
                    )
                written += 1
            except Exception as exc:
                self.logger.error(
                    "Failed to write notification",
                    extra={
                        "recipient_id": item.recipient_id,
                        "notification_type": item.type.value,
                        "error": str(exc),
                    },
                )
        return written


class NotificationOutbox:
    """Collects notifications during a transaction and flushes them after commit."""

    def __init__(self, notifier: NotificationService):
        self.notifier = notifier
        self._pending: List[PendingNotification] = []

    def add(
        self,
        recipient_id: str,
        recipient_role: ActorRole,
        type: NotificationType,
        message: str,
    ) -> None:
        self._pending.append(PendingNotification(recipient_id, recipient_role, type, message))

    def flush(self) -> int:
        pending, self._pending = self._pending, []
        if not pending:
            return 0
        return self.notifier.emit(pending)

    def discard(self) -> None:
        self._pending = []
