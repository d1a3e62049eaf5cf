"""Identity lookups against the local teacher/student projection."""

from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..models.user import Student, Teacher
from ..repositories.factory import RepositoryFactory


class IdentityDirectory:
    """Resolves public identifiers to teachers/students and display names."""

    def __init__(self, db: Session):
        self.teachers = RepositoryFactory.create_teacher_repository(db)
        self.students = RepositoryFactory.create_student_repository(db)

    def find_teacher(self, teacher_id: str) -> Optional[Teacher]:
        return self.teachers.get_by_id(teacher_id)

    def find_student(self, student_id: str) -> Optional[Student]:
        return self.students.get_by_id(student_id)

    def get_teacher(self, teacher_id: str) -> Teacher:
        teacher = self.find_teacher(teacher_id)
        if teacher is None:
            raise NotFoundException(f"Teacher {teacher_id} not found", code="TEACHER_NOT_FOUND")
        return teacher

    def get_student(self, student_id: str) -> Student:
        student = self.find_student(student_id)
        if student is None:
            raise NotFoundException(f"Student {student_id} not found", code="STUDENT_NOT_FOUND")
        return student

    def teacher_name(self, teacher_id: str) -> str:
        teacher = self.find_teacher(teacher_id)
        return str(teacher.name) if teacher else teacher_id

    def student_name(self, student_id: str) -> str:
        student = self.find_student(student_id)
        return str(student.name) if student else student_id

    def teacher_names(self, teacher_ids: Iterable[str]) -> Dict[str, str]:
        return self.teachers.display_names(teacher_ids)
