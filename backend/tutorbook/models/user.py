# backend/tutorbook/models/user.py
"""
Local projection of the identity directory.

Credentials and profile management live in the external identity service.
The core only needs stable identifiers, display names, the student handle
used to build classroom ids, and the teacher's payroll attributes.
"""

from sqlalchemy import Boolean, Column, DateTime, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Teacher(Base):
    """
    A teacher who publishes slots and is paid per class.

    Attributes:
        id: Public identifier (ULID)
        email: Contact address, also used as fallback payment account
        name: Display name used in notifications
        rate: Individual per-class rate; None falls back to the global rate
        payment_account: Account identifier for disbursements
        is_active: Inactive teachers are excluded from batch payroll
    """

    __tablename__ = "teachers"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    rate = Column(Numeric(10, 2), nullable=True)
    payment_account = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    slots = relationship("Slot", back_populates="teacher", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Teacher {self.id}: {self.name}>"


class Student(Base):
    """A student who books slots."""

    __tablename__ = "students"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def handle(self) -> str:
        """Local part of the email address."""
        return str(self.email).split("@", 1)[0]

    def __repr__(self) -> str:
        return f"<Student {self.id}: {self.name}>"
