"""
Unit tests for SessionSettings.
"""

import os

import pytest
from pydantic import ValidationError

from session_auth.config import SessionSettings
from session_auth.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host SESSION_AUTH_* variables out of these tests."""
    for name in list(os.environ):
        if name.startswith("SESSION_AUTH_") or name.startswith("APP_"):
            monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = SessionSettings()

    assert settings.default_expiry_hours == 24.0
    assert settings.refresh_window_minutes == 30
    assert settings.poll_interval_seconds == 60.0
    assert settings.log_json is False
    assert settings.storage_path.endswith("storage.json")


def test_from_env_converts_types(monkeypatch):
    """Test prefixed variables are converted to the field types."""
    monkeypatch.setenv("SESSION_AUTH_DEFAULT_EXPIRY_HOURS", "12.5")
    monkeypatch.setenv("SESSION_AUTH_REFRESH_WINDOW_MINUTES", "15")
    monkeypatch.setenv("SESSION_AUTH_LOG_JSON", "true")
    monkeypatch.setenv("SESSION_AUTH_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv("UNRELATED", "ignored")

    settings = SessionSettings.from_env()

    assert settings.default_expiry_hours == 12.5
    assert settings.refresh_window_minutes == 15
    assert settings.log_json is True
    assert settings.api_base_url == "https://api.example.com"


def test_from_env_overrides_win(monkeypatch):
    monkeypatch.setenv("SESSION_AUTH_POLL_INTERVAL_SECONDS", "5")
    settings = SessionSettings.from_env(poll_interval_seconds=1.0)
    assert settings.poll_interval_seconds == 1.0


def test_from_env_custom_prefix(monkeypatch):
    monkeypatch.setenv("APP_LOG_LEVEL", "DEBUG")
    settings = SessionSettings.from_env(prefix="APP_")
    assert settings.log_level == "DEBUG"


def test_from_env_rejects_bad_number(monkeypatch):
    monkeypatch.setenv("SESSION_AUTH_REFRESH_WINDOW_MINUTES", "soon")
    with pytest.raises(ConfigError):
        SessionSettings.from_env()


def test_from_env_rejects_non_positive(monkeypatch):
    monkeypatch.setenv("SESSION_AUTH_API_TIMEOUT", "0")
    with pytest.raises(ConfigError, match="api_timeout"):
        SessionSettings.from_env()


@pytest.mark.parametrize(
    "overrides",
    [
        {"default_expiry_hours": 0},
        {"refresh_window_minutes": -1},
        {"poll_interval_seconds": 0},
        {"api_timeout": -2},
    ],
)
def test_validation(overrides):
    with pytest.raises(ValidationError):
        SessionSettings(**overrides)
