"""
Memory Storage Adapter - In-memory key-value storage (testing only).
"""

from typing import Dict, Iterable, List, Optional
from session_auth.ports.storage_port import KeyValueStorePort


class MemoryStorageAdapter(KeyValueStorePort):
    """
    In-memory key-value storage.

    WARNING: Only for testing. Values are lost on restart.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        """Initialize in-memory storage."""
        self._items: Dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def multi_remove(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._items.pop(key, None)

    def keys(self) -> List[str]:
        """Keys currently stored (for assertions in tests)."""
        return sorted(self._items)
