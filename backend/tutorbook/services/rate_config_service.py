# backend/tutorbook/services/rate_config_service.py
"""Per-class pay rate configuration."""

from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy.orm import Session

from ..core.actor import Actor
from ..core.config import settings
from ..core.constants import MONEY_QUANTUM
from ..core.exceptions import NotAuthorizedException, ValidationException
from ..repositories.factory import RepositoryFactory
from .base import BaseService, Clock
from .identity_directory import IdentityDirectory

GLOBAL_RATE_KEY = "global_rate"


def to_money(value) -> Decimal:
    """Coerce a stored or submitted rate to a 2-place Decimal."""
    try:
        return Decimal(str(value)).quantize(MONEY_QUANTUM)
    except (InvalidOperation, ValueError) as exc:
        raise ValidationException(f"Invalid rate: {value!r}", code="INVALID_RATE") from exc


class RateConfigService(BaseService):
    """
    Resolves the rate a teacher is paid per class.

    A teacher's individual rate wins; otherwise the global rate stored in
    platform config applies, falling back to ``settings.global_rate``.
    """

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.config_repository = RepositoryFactory.create_platform_config_repository(db)
        self.directory = IdentityDirectory(db)

    def get_global_rate(self) -> Decimal:
        stored = self.config_repository.get_value(GLOBAL_RATE_KEY)
        if stored is None:
            return to_money(settings.global_rate)
        return to_money(stored)

    @BaseService.measure_operation("set_global_rate")
    def set_global_rate(self, rate, actor: Optional[Actor] = None) -> Decimal:
        self._require_admin(actor)
        value = self._validate_rate(rate)
        with self.transaction():
            self.config_repository.upsert(GLOBAL_RATE_KEY, str(value))
        self.logger.info("Global rate set to %s", value)
        return value

    def get_teacher_rate(self, teacher_id: str) -> Decimal:
        teacher = self.directory.get_teacher(teacher_id)
        if teacher.rate is not None:
            return to_money(teacher.rate)
        return self.get_global_rate()

    @BaseService.measure_operation("set_teacher_rate")
    def set_teacher_rate(
        self, teacher_id: str, rate, actor: Optional[Actor] = None
    ) -> Optional[Decimal]:
        """Set an individual rate; ``None`` clears it back to the global rate."""
        self._require_admin(actor)
        value = None if rate is None else self._validate_rate(rate)
        with self.transaction():
            teacher = self.directory.get_teacher(teacher_id)
            teacher.rate = value
        self.logger.info("Rate for teacher %s set to %s", teacher_id, value)
        return value

    @staticmethod
    def _validate_rate(rate) -> Decimal:
        value = to_money(rate)
        if value <= 0:
            raise ValidationException("Rate must be positive", code="INVALID_RATE")
        return value

    @staticmethod
    def _require_admin(actor: Optional[Actor]) -> None:
        if actor is not None and not actor.is_admin:
            raise NotAuthorizedException("Only administrators can change pay rates")
