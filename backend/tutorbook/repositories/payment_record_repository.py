# backend/tutorbook/repositories/payment_record_repository.py
"""Data access for the append-only payment ledger."""

from datetime import date
from typing import Iterable, List, Optional, Set

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.payment_record import PaymentRecord
from .base_repository import BaseRepository


class PaymentRecordRepository(BaseRepository[PaymentRecord]):
    def __init__(self, db: Session):
        super().__init__(db, PaymentRecord)

    def append(self, **kwargs) -> PaymentRecord:
        """Insert a record, surfacing the period uniqueness violation as IntegrityError."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def get_by_period(self, teacher_id: str, period_label: str) -> Optional[PaymentRecord]:
        return self.find_one_by(teacher_id=teacher_id, period_label=period_label)

    def teachers_paid_for(self, period_label: str, teacher_ids: Iterable[str]) -> Set[str]:
        ids = list(teacher_ids)
        if not ids:
            return set()
        try:
            rows = (
                self.db.query(PaymentRecord.teacher_id)
                .filter(
                    PaymentRecord.period_label == period_label,
                    PaymentRecord.teacher_id.in_(ids),
                )
                .all()
            )
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading paid teachers: {str(e)}")
            raise RepositoryException(f"Failed to load payment status: {str(e)}")

    def list_for_teacher(
        self,
        teacher_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[PaymentRecord]:
        """Payment history newest first; the range filters on issue date."""
        try:
            query = self.db.query(PaymentRecord).filter(PaymentRecord.teacher_id == teacher_id)
            if start_date is not None:
                query = query.filter(PaymentRecord.issue_date >= start_date)
            if end_date is not None:
                query = query.filter(PaymentRecord.issue_date <= end_date)
            return query.order_by(
                PaymentRecord.issue_date.desc(), PaymentRecord.created_at.desc()
            ).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing payments for teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to list payments: {str(e)}")
