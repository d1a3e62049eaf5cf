# backend/tutorbook/models/slot.py
"""
Slot model.

A slot is one bookable (teacher, date, time) unit. ``available`` is a
projection of the booking state: it is cleared the moment a booking is
created against the slot and set again when that booking is cancelled.
"""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, String, Time, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Slot(Base):
    __tablename__ = "slots"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(String(26), ForeignKey("teachers.id"), nullable=False, index=True)
    slot_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    teacher = relationship("Teacher", back_populates="slots")

    __table_args__ = (
        UniqueConstraint("teacher_id", "slot_date", "start_time", name="uq_slots_teacher_date_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<Slot {self.teacher_id} {self.slot_date} {self.start_time} "
            f"available={self.available}>"
        )
