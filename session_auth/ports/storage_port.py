"""
Storage Port - Interface for the persistent key-value store.

Implementations:
- FileStorageAdapter: JSON file on local disk
- RedisStorageAdapter: Redis-backed storage
- MemoryStorageAdapter: In-memory storage (testing only)
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional


class KeyValueStorePort(ABC):
    """Port: Asynchronous, crash-durable string key-value storage."""

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """
        Read a value.

        Args:
            key: Storage key

        Returns:
            Stored string, or None if the key is not set

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """
        Write a value, replacing any previous one.

        Args:
            key: Storage key
            value: Serialized value

        Raises:
            StorageError: If the backend cannot be written
        """
        pass

    @abstractmethod
    async def multi_remove(self, keys: Iterable[str]) -> None:
        """
        Delete several keys in one operation. Missing keys are ignored.

        Args:
            keys: Storage keys to delete

        Raises:
            StorageError: If the backend cannot be written
        """
        pass
