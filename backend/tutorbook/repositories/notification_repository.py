"""Data access for in-app notifications."""

from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.notification import Notification
from .base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: Session):
        super().__init__(db, Notification)

    def list_for_recipient(self, recipient_id: str, limit: int = 50) -> List[Notification]:
        try:
            return (
                self.db.query(Notification)
                .filter(Notification.recipient_id == recipient_id)
                .order_by(Notification.created_at.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing notifications for {recipient_id}: {str(e)}")
            raise RepositoryException(f"Failed to list notifications: {str(e)}")
