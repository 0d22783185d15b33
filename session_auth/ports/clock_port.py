"""
Clock Port - Source of the current instant.

Implementations:
- SystemClock: Wall clock
- ManualClock: Settable clock (testing only)
"""

from abc import ABC, abstractmethod
from datetime import datetime


class ClockPort(ABC):
    """Port: Tell the time."""

    @abstractmethod
    def now(self) -> datetime:
        """Current instant as a timezone-aware UTC datetime."""
        pass
