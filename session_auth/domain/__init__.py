"""
Domain Models - Pure business entities.

No infrastructure dependencies. Domain logic only.
"""

from session_auth.domain.credential import (
    CredentialRecord,
    CredentialState,
    classify,
    parse_server_expiry,
    remaining_minutes,
)
from session_auth.domain.session import SessionFlag, SessionGrant
from session_auth.domain.status import EligibilityReport, TokenInfo
from session_auth.domain.user import User

__all__ = [
    "CredentialRecord",
    "CredentialState",
    "classify",
    "parse_server_expiry",
    "remaining_minutes",
    "SessionFlag",
    "SessionGrant",
    "EligibilityReport",
    "TokenInfo",
    "User",
]
