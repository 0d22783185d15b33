"""
Adapters - Implementations of ports.

Storage:
- FileStorageAdapter: JSON file on local disk
- RedisStorageAdapter: Redis-backed storage
- MemoryStorageAdapter: In-memory storage (testing)

Remote Session API:
- HttpSessionAPI: REST backend over httpx
- JWTSessionAPI: In-process JWT issuer (development and tests)

Clocks:
- SystemClock: Wall clock
- ManualClock: Settable clock (testing)
"""

# Storage
from session_auth.adapters.file_storage import FileStorageAdapter
from session_auth.adapters.redis_storage import RedisStorageAdapter
from session_auth.adapters.memory_storage import MemoryStorageAdapter

# Remote Session API
from session_auth.adapters.http_session_api import HttpSessionAPI
from session_auth.adapters.jwt_session_api import JWTSessionAPI

# Clocks
from session_auth.adapters.clock import SystemClock, ManualClock

__all__ = [
    # Storage
    "FileStorageAdapter",
    "RedisStorageAdapter",
    "MemoryStorageAdapter",
    # Remote Session API
    "HttpSessionAPI",
    "JWTSessionAPI",
    # Clocks
    "SystemClock",
    "ManualClock",
]
