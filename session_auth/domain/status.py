"""
Status Models - Read-only diagnostics about the stored credential.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional

from session_auth.domain.credential import CredentialState

# Below this the status monitor shows "expiring soon"
EXPIRING_SOON_MINUTES = 60


@dataclass
class TokenInfo:
    """Snapshot of the stored credential, for monitors and debugging."""
    has_token: bool
    is_valid: bool
    state: CredentialState
    remaining_minutes: int
    issued_at: Optional[datetime] = None
    expiry_time: Optional[datetime] = None

    @property
    def status_label(self) -> str:
        """Short label for a status display."""
        if not self.has_token:
            return "no token"
        if not self.is_valid:
            return "expired"
        if self.remaining_minutes < EXPIRING_SOON_MINUTES:
            return "expiring soon"
        return "ok"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_token": self.has_token,
            "is_valid": self.is_valid,
            "state": self.state.value,
            "remaining_minutes": self.remaining_minutes,
            "issued_at": self.issued_at.isoformat() if self.issued_at else None,
            "expiry_time": self.expiry_time.isoformat() if self.expiry_time else None,
            "status": self.status_label,
        }


@dataclass
class EligibilityReport:
    """Explains whether a silent session restore can happen, and why."""
    can_auto_login: bool
    has_valid_credential: bool
    should_refresh: bool
    remaining_minutes: int
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "can_auto_login": self.can_auto_login,
            "has_valid_credential": self.has_valid_credential,
            "should_refresh": self.should_refresh,
            "remaining_minutes": self.remaining_minutes,
            "reason": self.reason,
        }
