"""
Credential Domain Model - The persisted authentication credential.

The token is opaque: nothing in this module parses or inspects it.
All expiry decisions go through classify(), so the state machine
Absent -> Valid -> NearExpiry -> Expired (-> Absent) lives in one place.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Any, Optional

from session_auth.config import DEFAULT_EXPIRY_HOURS, REFRESH_WINDOW_MINUTES
from session_auth.errors import MalformedRecordError

# Latest instant a record may carry; later expiries are clamped to it
MAX_EXPIRY = datetime(9999, 12, 31, tzinfo=timezone.utc)


class CredentialState(Enum):
    """Credential lifecycle states, derived at read time."""
    ABSENT = "absent"
    VALID = "valid"
    NEAR_EXPIRY = "near_expiry"
    EXPIRED = "expired"

    @property
    def is_usable(self) -> bool:
        return self in (CredentialState.VALID, CredentialState.NEAR_EXPIRY)


def to_epoch_ms(value: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds."""
    return int(value.timestamp() * 1000)


def from_epoch_ms(value: Any) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"epoch milliseconds expected, got {type(value).__name__}")
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


@dataclass
class CredentialRecord:
    """
    CredentialRecord entity - the token plus its timing metadata.

    Domain rules:
    - issued_at <= expiry_at is not enforced; a record whose expiry_at
      is not in the future is simply treated as absent on read
    - expiry_at comes from the server when it supplies one, otherwise
      from a relative validity (default 24 hours)
    """
    token: str
    issued_at: datetime
    expiry_at: datetime

    @classmethod
    def create(
        cls,
        token: str,
        now: datetime,
        expiry_hours: float = DEFAULT_EXPIRY_HOURS,
    ) -> "CredentialRecord":
        """
        Create a record that expires a relative duration from now.

        Args:
            token: Opaque token string
            now: Issue instant
            expiry_hours: Validity in hours (fractions allowed). Durations
                past MAX_EXPIRY are clamped to it.

        Returns:
            New record
        """
        try:
            expiry_at = min(now + timedelta(hours=expiry_hours), MAX_EXPIRY)
        except OverflowError:
            expiry_at = MAX_EXPIRY if expiry_hours > 0 else now
        return cls(token=token, issued_at=now, expiry_at=expiry_at)

    def remaining(self, now: datetime) -> timedelta:
        """Lifetime left at `now` (negative once expired)."""
        return self.expiry_at - now

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted layout (epoch milliseconds)."""
        return {
            "token": self.token,
            "issuedAt": to_epoch_ms(self.issued_at),
            "expiryTime": to_epoch_ms(self.expiry_at),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CredentialRecord":
        """
        Deserialize from the persisted layout.

        Raises:
            MalformedRecordError: If data is not a dict of the expected shape
        """
        if not isinstance(data, dict):
            raise MalformedRecordError("credential record is not an object")

        token = data.get("token")
        if not isinstance(token, str) or not token:
            raise MalformedRecordError("credential record has no token")

        try:
            return cls(
                token=token,
                issued_at=from_epoch_ms(data["issuedAt"]),
                expiry_at=from_epoch_ms(data["expiryTime"]),
            )
        except (KeyError, TypeError, ValueError, OverflowError, OSError) as e:
            raise MalformedRecordError(f"credential record has invalid timestamps: {e}")


def remaining_minutes(record: Optional[CredentialRecord], now: datetime) -> int:
    """Whole minutes left, floored, never negative. 0 when there is no record."""
    if record is None:
        return 0
    seconds = record.remaining(now).total_seconds()
    return max(0, math.floor(seconds / 60))


def classify(
    record: Optional[CredentialRecord],
    now: datetime,
    refresh_window_minutes: int = REFRESH_WINDOW_MINUTES,
) -> CredentialState:
    """
    Classify a record at instant `now`.

    NEAR_EXPIRY is the half-open window 0 < remaining_minutes <= window;
    a record with expiry_at <= now is EXPIRED.

    Args:
        record: Persisted record, or None
        now: Evaluation instant
        refresh_window_minutes: Size of the near-expiry window

    Returns:
        The credential state
    """
    if record is None:
        return CredentialState.ABSENT
    if record.expiry_at <= now:
        return CredentialState.EXPIRED

    minutes = remaining_minutes(record, now)
    if 0 < minutes <= refresh_window_minutes:
        return CredentialState.NEAR_EXPIRY
    return CredentialState.VALID


def parse_server_expiry(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a server-supplied ISO-8601 expiry.

    Naive timestamps are taken as UTC. A trailing "Z" is accepted.
    Instants that fall outside the representable range once converted
    to UTC, or beyond MAX_EXPIRY, count as unparseable.

    Returns:
        Aware UTC datetime, or None if value is missing or unparseable
    """
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    try:
        parsed = parsed.astimezone(timezone.utc)
    except OverflowError:
        return None
    if parsed > MAX_EXPIRY:
        return None
    return parsed
