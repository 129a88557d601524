"""
Application configuration models and helpers.

Centralizes settings so the FastAPI surface, the console scripts, and the
polling services share one configuration source.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseSettings):
    """Connection details for the assessment backend."""

    model_config = SettingsConfigDict(
        env_prefix="NEUROSNAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_base_url: str = Field(
        "http://localhost:8080/api",
        description="Base URL every backend path is resolved against.",
    )
    frontend_api_key: str = Field(
        ...,
        min_length=1,
        description="Static credential sent as the X-Frontend-Key header.",
    )
    request_timeout: float = Field(30.0, gt=0)

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class PollingSettings(BaseSettings):
    """Tunables for the analysis result poller."""

    model_config = SettingsConfigDict(
        env_prefix="NEUROSNAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    poll_max_attempts: int = Field(20, gt=0)
    rate_limit_fallback_seconds: float = Field(
        30.0,
        ge=0,
        description="Wait applied after a 429 that carries no Retry-After header.",
    )
    max_report_sessions: int = Field(
        256,
        gt=0,
        description="Report sessions kept in memory by the HTTP surface.",
    )
    dev_placeholder_result_id: Optional[str] = Field(
        None,
        description=(
            "Identifier substituted when a submission response has none. "
            "Honoured only when APP_ENV=development."
        ),
    )


class AppSettings(BaseSettings):
    """Root settings object for the application and scripts."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = Field("production", description="Deployment environment name.")
    app_log_level: str = Field("INFO")
    backend: BackendSettings = Field(default_factory=BackendSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)

    @property
    def is_development(self) -> bool:
        return self.app_env.strip().lower() == "development"


def load_settings(env_file: Optional[Path] = None) -> AppSettings:
    """Build settings from an explicit env file instead of the default .env."""
    if env_file is None:
        return AppSettings()  # type: ignore[call-arg]
    return AppSettings(
        _env_file=env_file,
        backend=BackendSettings(_env_file=env_file),  # type: ignore[call-arg]
        polling=PollingSettings(_env_file=env_file),
    )


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "BackendSettings",
    "PollingSettings",
    "get_settings",
    "load_settings",
]
