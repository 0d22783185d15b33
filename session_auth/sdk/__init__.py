"""SDK - High-level client for applications."""

from session_auth.sdk.client import SessionClient

__all__ = ["SessionClient"]
