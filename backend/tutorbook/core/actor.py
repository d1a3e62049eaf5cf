# backend/tutorbook/core/actor.py
"""Caller identity as resolved by the outer (authentication) layer."""

from dataclasses import dataclass

from .enums import ActorRole


@dataclass(frozen=True)
class Actor:
    role: ActorRole
    id: str

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == ActorRole.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == ActorRole.STUDENT
