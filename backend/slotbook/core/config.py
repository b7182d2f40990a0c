# backend/slotbook/core/config.py
import logging
import os
from pathlib import Path
from typing import Any, Literal, Set

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


PROD_ENVIRONMENTS: Set[str] = {"prod", "production", "live"}

BufferPolicyName = Literal["surround", "trailing"]
ReservationStrategyName = Literal["strict", "best_effort"]
NotificationSinkName = Literal["log", "celery"]


class Settings(BaseSettings):
    """Runtime configuration for the scheduling engine."""

    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    environment: str = Field(default="development", description="Deployment environment name")
    is_testing: bool = Field(default=False, description="Set by the test harness")
    log_level: str = Field(default="INFO")

    database_url: str = Field(
        default="sqlite:///./slotbook.db",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
    )
    redis_url: str = Field(
        default="redis://localhost:6379",
        validation_alias=AliasChoices("REDIS_URL", "redis_url"),
    )

    # Booking policy
    booking_buffer_minutes: int = Field(default=15, ge=0)
    slot_interval_minutes: int = Field(default=15, gt=0)
    min_booking_hours: int = Field(default=2, ge=0)
    max_booking_days: int = Field(default=90, gt=0)
    default_service_duration_minutes: int = Field(
        default=60,
        gt=0,
        description="Duration assumed for appointments whose service cannot be resolved",
    )
    buffer_policy: BufferPolicyName = Field(default="surround")

    # Reservation authority
    reservation_strategy: ReservationStrategyName = Field(default="strict")
    reservation_allow_degraded_fallback: bool = Field(
        default=False,
        description="Allow strict reservations to fall back to best-effort when the lock is unavailable",
    )

    # Optional Redis pre-lock across API workers
    slot_lock_enabled: bool = Field(default=False)
    slot_lock_ttl_seconds: int = Field(default=30, gt=0)
    slot_lock_namespace: str = Field(default="slotbook")

    # Background jobs
    auto_completion_interval_minutes: int = Field(default=15, gt=0)

    # Notifications
    notification_sink: NotificationSinkName = Field(default="log")

    @field_validator("reservation_strategy", mode="before")
    @classmethod
    def _normalize_strategy(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_")
        return value

    @field_validator("buffer_policy", mode="before")
    @classmethod
    def _normalize_buffer_policy(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def _validate_booking_window(self) -> "Settings":
        if self.min_booking_hours >= self.max_booking_days * 24:
            raise ValueError("min_booking_hours must be shorter than the max booking window")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in PROD_ENVIRONMENTS

    def get_database_url(self) -> str:
        """Return the SQLAlchemy URL, normalizing legacy postgres:// schemes."""
        url = self.database_url
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://") :]
        return url


settings = Settings()
