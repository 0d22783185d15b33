"""
Errors - Exception hierarchy for the session subsystem.

All errors derive from SessionAuthError so callers can use a single
``except`` clause when needed.
"""

from typing import Optional


class SessionAuthError(Exception):
    """Base class for all session subsystem errors."""


class StorageError(SessionAuthError):
    """Local key-value storage read or write failed."""


class MalformedRecordError(StorageError):
    """A persisted record failed to parse or has the wrong shape."""


class RemoteAuthError(SessionAuthError):
    """
    The Remote Session API rejected a call or could not be reached.

    Attributes:
        status_code: HTTP status returned by the server, None for transport failures
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


class NotAuthenticatedError(SessionAuthError):
    """A protected operation was attempted without a valid session."""


class ConfigError(SessionAuthError):
    """Invalid configuration value."""
