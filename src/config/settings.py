"""Client-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO")

    # IVR API connectivity
    ivr_base_url: str | None = Field(
        default=None,
        description="Base URL of the IVR API server, e.g. https://api.example.com",
    )
    ivr_api_key: str | None = Field(default=None, description="Shared secret sent with every request.")
    ivr_request_timeout: float = Field(default=30.0, gt=0.0)

    # Status polling
    ivr_poll_interval: float = Field(
        default=5.0,
        ge=0.0,
        description="Seconds to wait between status checks while the call is in progress.",
    )
    ivr_poll_max_attempts: int = Field(default=12, ge=1)
    ivr_poll_error_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Seconds to wait before retrying a status check that failed.",
    )

    @field_validator("ivr_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.rstrip("/") or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
