"""Application configuration and settings management."""
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".." / ".env"),
        env_file_encoding="utf-8",
        env_prefix="ECOMONITOR_",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = "Eco Monitor Alerts"

    # Database
    database_url: str = "sqlite+aiosqlite:///./ecomonitor.db"
    database_timeout_seconds: float = 5.0  # lock wait / pool checkout
    alert_write_timeout_seconds: float = 15.0  # whole breach upsert

    allowed_origins: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Scheduler
    scheduler_enabled: bool = True
    auto_resolve_interval_seconds: int = 60
    auto_resolve_after_minutes: int = 5
    retention_purge_interval_seconds: int = 60 * 60 * 24
    history_retention_days: int = 90

    # Alert queries
    date_range_end_inclusive: bool = True

    # Notifications
    alert_notifications_enabled: bool = True

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: List[str] | str) -> List[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings instance."""

    return Settings()


settings = get_settings()
