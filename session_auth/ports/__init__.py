"""
Ports - Interfaces for storage, the remote session API and time.

Hexagonal architecture: These define WHAT we need, not HOW.
Adapters provide the HOW.
"""

from session_auth.ports.storage_port import KeyValueStorePort
from session_auth.ports.session_api_port import RemoteSessionPort
from session_auth.ports.clock_port import ClockPort

__all__ = [
    "KeyValueStorePort",
    "RemoteSessionPort",
    "ClockPort",
]
