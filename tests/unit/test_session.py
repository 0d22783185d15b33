"""
Unit tests for Session domain model and status reports.
"""

import pytest
from datetime import datetime, timezone

from session_auth.domain.credential import CredentialState
from session_auth.domain.session import SessionFlag, SessionGrant
from session_auth.domain.status import EligibilityReport, TokenInfo
from session_auth.domain.user import User
from session_auth.errors import MalformedRecordError


NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_session_flag_defaults():
    """Test a fresh flag is logged out."""
    flag = SessionFlag()
    assert flag.is_logged_in is False
    assert flag.last_activity is None


def test_session_flag_serialization():
    """Test flag to_dict and from_dict."""
    flag = SessionFlag(is_logged_in=True, last_activity=NOW)

    data = flag.to_dict()
    assert data == {"isLoggedIn": True, "lastActivity": 1709294400000}

    restored = SessionFlag.from_dict(data)
    assert restored == flag


def test_session_flag_without_activity():
    restored = SessionFlag.from_dict({"isLoggedIn": False, "lastActivity": None})
    assert restored.is_logged_in is False
    assert restored.last_activity is None


@pytest.mark.parametrize(
    "data",
    [
        None,
        [],
        {},
        {"isLoggedIn": "yes"},
        {"isLoggedIn": True, "lastActivity": "noon"},
    ],
)
def test_session_flag_rejects_malformed(data):
    with pytest.raises(MalformedRecordError):
        SessionFlag.from_dict(data)


def test_session_grant_to_dict():
    """Test grant serialization carries the nested user."""
    grant = SessionGrant(
        token="tok",
        user=User(user_id=1, username="alice"),
        token_expires_at="2024-03-02T12:00:00Z",
    )

    data = grant.to_dict()
    assert data["token"] == "tok"
    assert data["token_expires_at"] == "2024-03-02T12:00:00Z"
    assert data["user"]["username"] == "alice"


class TestTokenInfo:
    """Test status labels for the token status display."""

    def make(self, has_token=True, is_valid=True, minutes=120):
        state = CredentialState.VALID if is_valid else CredentialState.EXPIRED
        if not has_token:
            state = CredentialState.ABSENT
        return TokenInfo(
            has_token=has_token,
            is_valid=is_valid,
            state=state,
            remaining_minutes=minutes,
        )

    def test_labels(self):
        assert self.make(has_token=False, is_valid=False, minutes=0).status_label == "no token"
        assert self.make(is_valid=False, minutes=0).status_label == "expired"
        assert self.make(minutes=59).status_label == "expiring soon"
        assert self.make(minutes=60).status_label == "ok"

    def test_to_dict(self):
        info = TokenInfo(
            has_token=True,
            is_valid=True,
            state=CredentialState.NEAR_EXPIRY,
            remaining_minutes=10,
            issued_at=NOW,
            expiry_time=NOW,
        )
        data = info.to_dict()

        assert data["state"] == "near_expiry"
        assert data["status"] == "expiring soon"
        assert data["issued_at"] == NOW.isoformat()


def test_eligibility_report_to_dict():
    report = EligibilityReport(
        can_auto_login=True,
        has_valid_credential=True,
        should_refresh=False,
        remaining_minutes=300,
        reason="credential is healthy",
    )
    assert report.to_dict()["reason"] == "credential is healthy"
