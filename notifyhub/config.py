"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./notifyhub.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        default="change-me",
        description="Secret key used to verify identity tokens",
        min_length=1,
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    app_timezone: str | None = Field(
        default=None,
        description="IANA timezone name or UTC offset used for stored timestamps",
    )
    notification_list_limit: int = Field(
        default=50,
        description="Default maximum number of items returned by list endpoints",
        gt=0,
    )
    poll_interval_seconds: float = Field(
        default=10.0,
        description="Fixed interval between two client poll ticks",
        gt=0,
    )
    poll_request_timeout_seconds: float = Field(
        default=8.0,
        description="Timeout applied to every poll request",
        gt=0,
    )
    mark_read_max_attempts: int = Field(
        default=3,
        description="Maximum number of attempts for a client mark-read call",
        ge=1,
    )
    mark_read_retry_delay_seconds: float = Field(
        default=0.5,
        description="Delay between two mark-read attempts",
        ge=0,
    )

    @model_validator(mode="after")
    def _validate_poll_timing(self) -> "Settings":
        if self.poll_request_timeout_seconds >= self.poll_interval_seconds:
            raise ValueError(
                "POLL_REQUEST_TIMEOUT_SECONDS must be lower than POLL_INTERVAL_SECONDS"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
