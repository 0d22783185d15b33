"""
Session Settings - Tunables for the session subsystem.

Uses pydantic-settings. Defaults match the values the mobile client
shipped with. Every field can be overridden with a prefixed environment
variable, e.g. SESSION_AUTH_REFRESH_WINDOW_MINUTES=15.

Resolution priority (highest wins):
  1. Init arguments
  2. Environment variables (SESSION_AUTH_ prefix)
  3. Built-in defaults
"""

from pathlib import Path
from typing import Any, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from session_auth.errors import ConfigError

DEFAULT_EXPIRY_HOURS = 24.0
REFRESH_WINDOW_MINUTES = 30
POLL_INTERVAL_SECONDS = 60.0


def _default_storage_path() -> str:
    return str(Path.home() / ".session_auth" / "storage.json")


class SessionSettings(BaseSettings):
    """
    Session subsystem configuration.

    Attributes:
        default_expiry_hours: Validity used when the server supplies no expiry
        refresh_window_minutes: Remaining lifetime at or below which a refresh is due
        poll_interval_seconds: Period of the login-state monitor
        api_base_url: Base URL of the Remote Session API
        api_timeout: HTTP timeout in seconds
        storage_path: JSON file used by FileStorageAdapter
        log_level: Minimum log level
        log_json: Emit JSON log lines instead of console output
    """

    model_config = SettingsConfigDict(
        env_prefix="SESSION_AUTH_",
        extra="ignore",
    )

    default_expiry_hours: float = DEFAULT_EXPIRY_HOURS
    refresh_window_minutes: int = REFRESH_WINDOW_MINUTES
    poll_interval_seconds: float = POLL_INTERVAL_SECONDS
    api_base_url: str = "http://localhost:8080"
    api_timeout: float = 10.0
    storage_path: str = Field(default_factory=_default_storage_path)
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("default_expiry_hours", "poll_interval_seconds", "api_timeout")
    @classmethod
    def _positive(cls, value: float, info) -> float:
        if value <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return value

    @field_validator("refresh_window_minutes")
    @classmethod
    def _not_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("refresh_window_minutes must not be negative")
        return value

    @classmethod
    def from_env(cls, prefix: Optional[str] = None, **overrides: Any) -> "SessionSettings":
        """
        Build settings from prefixed environment variables.

        Args:
            prefix: Environment variable prefix (default SESSION_AUTH_)
            **overrides: Explicit values, taking precedence over the environment

        Returns:
            Settings instance

        Raises:
            ConfigError: If a value fails validation
        """
        try:
            if prefix is not None:
                return cls(_env_prefix=prefix, **overrides)
            return cls(**overrides)
        except ValidationError as e:
            raise ConfigError(f"Invalid session settings: {e}")
