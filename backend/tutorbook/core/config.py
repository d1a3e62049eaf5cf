# backend/tutorbook/core/config.py
from datetime import tzinfo
import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment name",
    )
    is_testing: bool = False  # Set to True when running tests

    # Persistence
    database_url: str = Field(
        default="sqlite:///./tutorbook.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements to the log")

    # Redis (Celery broker + monitor lock)
    redis_url: str = Field(default="redis://localhost:6379", description="Redis connection URL")

    # Calendar
    platform_timezone: str = Field(
        default="Asia/Manila",
        description="Timezone that booking dates and times are expressed in",
    )

    # Payroll
    global_rate: float = Field(
        default=100.0,
        description="Per-class rate used when no rate is stored in platform config",
    )
    currency_symbol: str = Field(default="₱", description="Currency symbol used in notifications")
    late_deduction_rate: float = Field(
        default=0.01,
        description="Fraction of the class rate deducted per late minute",
    )
    payroll_max_range_days: int = Field(
        default=31,
        description="Longest date range accepted by payroll queries",
    )
    default_payment_method: str = Field(default="HSBC_PayPal")
    auto_disbursement_enabled: bool = Field(
        default=False,
        description="Schedule the weekly disbursement of the previous week",
    )

    # Attendance
    absence_threshold_minutes: int = Field(
        default=15,
        description="Minutes after scheduled start before non-entry counts as absence",
    )
    completion_window_min_minutes: int = Field(default=15)
    completion_window_max_minutes: int = Field(default=25)
    attendance_check_interval_seconds: int = Field(default=60)
    attendance_lock_ttl_seconds: int = Field(
        default=55,
        ge=10,
        description="Redis lock TTL keeping attendance ticks from overlapping",
    )

    # Cancellation requests
    cancellation_reason_min_length: int = Field(default=10)
    cancellation_reason_max_length: int = Field(default=500)

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("platform_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("global_rate")
    @classmethod
    def _validate_rate(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("global_rate must be positive")
        return value

    @model_validator(mode="after")
    def _validate_windows(self) -> "Settings":
        if self.completion_window_min_minutes > self.completion_window_max_minutes:
            raise ValueError("completion window minimum exceeds maximum")
        if self.attendance_lock_ttl_seconds >= self.attendance_check_interval_seconds:
            logger.warning(
                "attendance_lock_ttl_seconds (%s) >= attendance_check_interval_seconds (%s); "
                "a stuck tick may skip the next one",
                self.attendance_lock_ttl_seconds,
                self.attendance_check_interval_seconds,
            )
        return self

    @property
    def tz(self) -> tzinfo:
        return pytz.timezone(self.platform_timezone)


settings = Settings()
