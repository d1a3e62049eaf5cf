"""Tests for per-class rate resolution and updates."""

from decimal import Decimal

import pytest

from tutorbook.core.exceptions import NotAuthorizedException, NotFoundException, ValidationException
from tutorbook.services.rate_config_service import RateConfigService, to_money


@pytest.fixture
def rate_service(db):
    return RateConfigService(db)


class TestRates:
    def test_global_rate_defaults_to_settings(self, rate_service):
        assert rate_service.get_global_rate() == Decimal("100.00")

    def test_set_global_rate(self, rate_service, admin_actor, teacher):
        assert rate_service.set_global_rate("125.5", admin_actor) == Decimal("125.50")
        assert rate_service.get_global_rate() == Decimal("125.50")
        assert rate_service.get_teacher_rate(teacher.id) == Decimal("125.50")

    def test_teacher_rate_overrides_global(self, rate_service, other_teacher):
        assert rate_service.get_teacher_rate(other_teacher.id) == Decimal("120.00")

    def test_clearing_teacher_rate_falls_back(self, rate_service, other_teacher, admin_actor):
        assert rate_service.set_teacher_rate(other_teacher.id, None, admin_actor) is None
        assert rate_service.get_teacher_rate(other_teacher.id) == Decimal("100.00")

    @pytest.mark.parametrize("rate", [0, -5, "abc"])
    def test_invalid_rates(self, rate_service, rate):
        with pytest.raises(ValidationException) as exc_info:
            rate_service.set_global_rate(rate)
        assert exc_info.value.code == "INVALID_RATE"

    def test_only_admins_change_rates(self, rate_service, teacher, teacher_actor):
        with pytest.raises(NotAuthorizedException):
            rate_service.set_teacher_rate(teacher.id, 90, teacher_actor)

    def test_unknown_teacher(self, rate_service):
        with pytest.raises(NotFoundException):
            rate_service.get_teacher_rate("missing")

    def test_to_money(self):
        assert to_money(99.999) == Decimal("100.00")
        assert to_money("7") == Decimal("7.00")
