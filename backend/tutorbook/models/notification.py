"""In-app notifications written after the triggering transaction commits."""

from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    recipient_id = Column(String(26), nullable=False, index=True)
    recipient_role = Column(String(20), nullable=False)
    type = Column(String(50), nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Notification {self.id}: to={self.recipient_id}, type={self.type}>"
