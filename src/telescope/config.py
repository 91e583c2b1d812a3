"""Application configuration."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    astrometry_api_key: str
    astrometry_base_url: str = "http://nova.astrometry.net/api"
    request_timeout_seconds: float = Field(default=60.0, gt=0)
    poll_interval_seconds: float = Field(default=5.0, gt=0)
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
