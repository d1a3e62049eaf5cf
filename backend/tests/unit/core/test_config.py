"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from tutorbook.core.config import Settings
from tutorbook.core.enums import BookingStatus


class TestSettings:
    def test_defaults(self):
        config = Settings()
        assert config.absence_threshold_minutes == 15
        assert (config.completion_window_min_minutes, config.completion_window_max_minutes) == (15, 25)
        assert config.tz.zone == "Asia/Manila"

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValidationError):
            Settings(platform_timezone="Mars/Olympus_Mons")

    def test_rate_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(global_rate=0)

    def test_window_must_be_ordered(self):
        with pytest.raises(ValidationError):
            Settings(completion_window_min_minutes=30, completion_window_max_minutes=25)

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("ABSENCE_THRESHOLD_MINUTES", "20")
        assert Settings().absence_threshold_minutes == 20


class TestBookingStatus:
    def test_terminal_statuses(self):
        assert {s for s in BookingStatus if s.is_terminal} == {
            BookingStatus.COMPLETED,
            BookingStatus.CANCELLED,
            BookingStatus.ABSENT,
        }
        assert BookingStatus.CONFIRMED in BookingStatus.active()
