# backend/clubreserve/core/config.py
import logging
import os
import re
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_SLOT_CATALOG = [
    "08:00",
    "09:30",
    "11:00",
    "12:30",
    "14:00",
    "15:30",
    "17:30",
    "19:00",
    "20:30",
    "22:00",
]

_HHMM_RE = re.compile(r"[0-9]{2}:[0-9]{2}")


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment name")

    database_url: str = Field(
        default="sqlite:///./clubreserve.db",
        description="SQLAlchemy URL for the reservations database",
    )
    sqlite_busy_timeout_seconds: float = Field(
        default=30.0,
        description="How long a SQLite writer waits for the write lock before giving up",
    )

    default_timezone: str = Field(
        default="America/Argentina/Buenos_Aires",
        description="Timezone used for courts that do not declare their own",
    )
    slot_catalog: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SLOT_CATALOG),
        description="Ordered local start times offered every day",
    )
    booking_window_days: int = Field(
        default=30,
        gt=0,
        description="How far ahead non-admin callers may book",
    )
    default_series_weeks: int = Field(default=24, gt=0)
    max_series_weeks: int = Field(default=52, gt=0)

    completion_sweep_interval_seconds: int = Field(
        default=300,
        gt=0,
        description="Period of the job that completes elapsed reservations",
    )

    redis_url: str = Field(default="redis://localhost:6379", description="Redis connection URL")
    celery_broker_url: Optional[str] = None
    celery_result_backend: Optional[str] = None

    log_level: str = "INFO"
    slow_operation_threshold_seconds: float = 1.0

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_timezone")
    @classmethod
    def validate_default_timezone(cls, v: str) -> str:
        try:
            pytz.timezone(v)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @field_validator("slot_catalog")
    @classmethod
    def validate_slot_catalog(cls, v: List[str]) -> List[str]:
        seen = set()
        for entry in v:
            if not _HHMM_RE.fullmatch(entry):
                raise ValueError(f"Slot {entry!r} must use HH:mm format")
            hours, minutes = int(entry[:2]), int(entry[3:])
            if hours > 23 or minutes > 59:
                raise ValueError(f"Slot {entry!r} is out of range")
            if entry in seen:
                raise ValueError(f"Slot {entry!r} appears more than once")
            seen.add(entry)
        if not v:
            raise ValueError("Slot catalog cannot be empty")
        return v


settings = Settings()
