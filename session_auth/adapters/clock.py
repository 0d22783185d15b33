"""
Clock Adapters - Wall clock and a settable clock for tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from session_auth.ports.clock_port import ClockPort


class SystemClock(ClockPort):
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock(ClockPort):
    """
    Clock that only moves when told to.

    WARNING: Only for testing. Lets expiry scenarios run without sleeping.
    """

    def __init__(self, start: Optional[datetime] = None):
        """
        Initialize manual clock.

        Args:
            start: Initial instant (default: current wall-clock time)
        """
        self._now = start or datetime.now(timezone.utc)
        if self._now.tzinfo is None:
            self._now = self._now.replace(tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, **delta: float) -> datetime:
        """Move forward by a timedelta given as keyword arguments, e.g. advance(minutes=5)."""
        self._now = self._now + timedelta(**delta)
        return self._now

    def set(self, instant: datetime) -> None:
        self._now = instant if instant.tzinfo else instant.replace(tzinfo=timezone.utc)
