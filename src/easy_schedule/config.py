"""Configuration settings for the EASY schedule core."""

import re
from pathlib import Path
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


_HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables (prefix ``EASY_``)."""

    # Storage
    database_path: Path = Path("easy_schedule.db")

    # Schedule defaults
    default_first_wake_time: str = "07:00"
    your_time_minutes: int = Field(default=0, ge=0)

    # Reminders
    reminder_advance_minutes: int = Field(default=5, ge=0)
    reminder_days_ahead: int = Field(default=2, ge=1, le=7)
    notifications_permitted: bool = True

    # Adjustment retention / cleanup job
    adjustment_retention_days: int = Field(default=7, ge=1)
    cleanup_enabled: bool = True
    cleanup_hour: int = Field(default=3, ge=0, le=23)

    log_level: str = "INFO"

    @field_validator("default_first_wake_time")
    @classmethod
    def validate_wake_time(cls, v: str) -> str:
        """Validate HH:MM format."""
        if not _HHMM_PATTERN.match(v):
            raise ValueError("Wake time must be in HH:MM (24h) format")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    class Config:
        env_prefix = "EASY_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
