"""
Session Domain Model - Login flag and session grants.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional

from session_auth.domain.credential import from_epoch_ms, to_epoch_ms
from session_auth.domain.user import User
from session_auth.errors import MalformedRecordError


@dataclass
class SessionFlag:
    """
    SessionFlag entity - small derived record next to the credential.

    Domain rules:
    - is_logged_in is True whenever a credential is stored
    - is_logged_in must not stay True once the credential is gone;
      readers that notice the mismatch correct it
    """
    is_logged_in: bool = False
    last_activity: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted layout (epoch milliseconds)."""
        return {
            "isLoggedIn": self.is_logged_in,
            "lastActivity": to_epoch_ms(self.last_activity) if self.last_activity else None,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SessionFlag":
        """
        Deserialize from the persisted layout.

        Raises:
            MalformedRecordError: If data is not a dict of the expected shape
        """
        if not isinstance(data, dict) or not isinstance(data.get("isLoggedIn"), bool):
            raise MalformedRecordError("session flag has no isLoggedIn boolean")

        raw_activity = data.get("lastActivity")
        try:
            last_activity = from_epoch_ms(raw_activity) if raw_activity is not None else None
        except (TypeError, ValueError, OverflowError, OSError) as e:
            raise MalformedRecordError(f"session flag has invalid lastActivity: {e}")

        return cls(is_logged_in=data["isLoggedIn"], last_activity=last_activity)


@dataclass
class SessionGrant:
    """
    SessionGrant - what the Remote Session API hands back.

    token is None when the server answered without issuing one
    (e.g. a current-user lookup). token_expires_at is the raw ISO-8601
    string as sent by the server.
    """
    token: Optional[str]
    user: User
    token_expires_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (token included, caller decides where it goes)."""
        return {
            "token": self.token,
            "token_expires_at": self.token_expires_at,
            "user": self.user.to_dict(),
        }
