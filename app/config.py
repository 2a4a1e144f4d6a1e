"""Application configuration models."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Seriesly", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    tvdb_api_key: str | None = Field(default=None, alias="TVDB_API_KEY")
    tvdb_api_url: str = Field(
        default="https://api4.thetvdb.com/v4", alias="TVDB_API_URL"
    )
    # TheTVDB tokens are valid for a month; refresh well before that.
    tvdb_token_ttl_seconds: int = Field(
        default=86_400, alias="TVDB_TOKEN_TTL", ge=60
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./seriesly.db", alias="DATABASE_URL"
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("tvdb_api_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: object) -> object:
        """Keep the base URL joinable with absolute request paths."""

        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value

    @field_validator("tvdb_api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> str:
        if value is None:
            return "INFO"
        level = str(value).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
