"""Configuration settings behaviour tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.config import Settings


def test_defaults_point_at_tvdb_v4() -> None:
    """Unconfigured settings should target the public TheTVDB v4 API."""

    settings = Settings(_env_file=None)

    assert settings.tvdb_api_url == "https://api4.thetvdb.com/v4"
    assert settings.tvdb_token_ttl_seconds >= 60
    assert settings.database_url.startswith("sqlite+aiosqlite://")


def test_api_url_trailing_slash_is_stripped() -> None:
    """Base URLs should be joinable with the absolute request paths."""

    settings = Settings(_env_file=None, TVDB_API_URL="https://tvdb.example/v4/ ")

    assert settings.tvdb_api_url == "https://tvdb.example/v4"


def test_blank_api_key_is_treated_as_missing() -> None:
    """A whitespace-only key should read as not configured."""

    settings = Settings(_env_file=None, TVDB_API_KEY="   ")

    assert settings.tvdb_api_key is None


def test_log_level_is_normalised() -> None:
    settings = Settings(_env_file=None, LOG_LEVEL="debug")

    assert settings.log_level == "DEBUG"


def test_unknown_log_level_raises() -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        Settings(_env_file=None, LOG_LEVEL="chatty")


def test_token_ttl_has_lower_bound() -> None:
    """Token lifetimes below a minute are rejected."""

    with pytest.raises(ValidationError):
        Settings(_env_file=None, TVDB_TOKEN_TTL=5)
