# backend/tutorbook/repositories/user_repository.py
"""Data access for the local teacher/student projection."""

from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.user import Student, Teacher
from .base_repository import BaseRepository


class TeacherRepository(BaseRepository[Teacher]):
    def __init__(self, db: Session):
        super().__init__(db, Teacher)

    def get_for_update(self, teacher_id: str) -> Optional[Teacher]:
        """Row-lock the teacher; serializes disbursements for the same teacher."""
        try:
            return self.db.query(Teacher).filter(Teacher.id == teacher_id).with_for_update().first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking teacher {teacher_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock teacher: {str(e)}")

    def list_active(self) -> List[Teacher]:
        try:
            return (
                self.db.query(Teacher).filter(Teacher.is_active.is_(True)).order_by(Teacher.name).all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing teachers: {str(e)}")
            raise RepositoryException(f"Failed to list teachers: {str(e)}")

    def display_names(self, teacher_ids: Iterable[str]) -> Dict[str, str]:
        ids = list(teacher_ids)
        if not ids:
            return {}
        try:
            rows = self.db.query(Teacher.id, Teacher.name).filter(Teacher.id.in_(ids)).all()
            return {row[0]: row[1] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading teacher names: {str(e)}")
            raise RepositoryException(f"Failed to load teacher names: {str(e)}")


class StudentRepository(BaseRepository[Student]):
    def __init__(self, db: Session):
        super().__init__(db, Student)
