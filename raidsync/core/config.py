"""
Configuration settings for the raidsync client.

Uses environment variables (prefixed with RAIDSYNC_) with sensible defaults
for development.
"""

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RAIDSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "raidsync"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Backend
    api_base_url: str = Field(default="http://localhost:8000/api")
    request_timeout: float = 30.0  # Uniform timeout for every CRUD call

    # Availability probe
    health_path: str = "/health"
    probe_timeout: float = 3.0
    availability_ttl: float = 300.0  # 5 minutes

    # Local cache
    cache_db_path: str = "local_data/raidsync.db"

    # Auth
    clear_token_on_unauthorized: bool = True

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are always joined with a leading slash."""
        return v.rstrip("/")

    @field_validator("request_timeout", "probe_timeout", "availability_ttl")
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Configure root logging for entry points."""
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
