"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from artelab.adapters.artelab_client import DEFAULT_BASE_URL

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    api_base_url: str = DEFAULT_BASE_URL
    http_timeout_seconds: float = 30.0
    http_retries: int = 1
    database_url: str = "sqlite:///artelab.db"
    preferences_path: Path = Path("artelab_preferences.json")
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="ARTELAB_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
