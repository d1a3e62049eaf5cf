# backend/tutorbook/models/payment_record.py
"""
Payment records.

Append-only ledger of salary disbursements. The period label doubles as the
idempotency key: a teacher can be paid for a given period at most once.
"""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.sql import func
import ulid

from ..core.enums import PaymentRecordStatus
from ..database import Base


class PaymentRecord(Base):
    __tablename__ = "payment_records"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(String(26), ForeignKey("teachers.id"), nullable=False, index=True)
    period_label = Column(String(32), nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    issue_date = Column(Date, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(50), nullable=False)
    account = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=PaymentRecordStatus.SUCCESS.value)
    remark = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("teacher_id", "period_label", name="uq_payment_records_teacher_period"),
    )

    def __repr__(self) -> str:
        return f"<PaymentRecord {self.id}: teacher={self.teacher_id}, period={self.period_label}>"
