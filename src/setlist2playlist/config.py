"""Configuration settings using pydantic-settings for environment variable loading."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Automatically reads from .env file and environment variables.
    Environment variables take precedence over .env file.
    Components never read settings themselves; the values are passed
    into their constructors.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Setlist.fm (needed by the create and setlist commands)
    setlist_fm_api_key: str | None = None
    setlist_max_pages: int = Field(default=1, ge=1)

    # Spotify OAuth (only needed by the login commands)
    spotify_client_id: str | None = None
    spotify_client_secret: str | None = None
    spotify_redirect_uri: str = "http://127.0.0.1:8888/callback"

    # Network
    http_timeout: float = Field(default=10.0, gt=0)
    resolver_max_workers: int = Field(default=4, ge=1)
    pipeline_timeout: float | None = Field(default=None, gt=0)

    # Delete the empty playlist when adding tracks fails
    cleanup_on_failure: bool = True

    # Logging
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once per CLI process.
    """
    return Settings()
