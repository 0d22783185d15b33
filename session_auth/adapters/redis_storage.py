"""
Redis Storage Adapter - Redis-backed key-value storage.
"""

from typing import Iterable, Optional
from session_auth.errors import StorageError
from session_auth.ports.storage_port import KeyValueStorePort


class RedisStorageAdapter(KeyValueStorePort):
    """
    Redis-backed key-value storage.

    Useful when several processes on one host share a session.
    Keys are namespaced with a prefix; values carry no Redis TTL because
    expiry is decided on read.
    """

    def __init__(
        self,
        redis_client=None,
        prefix: str = "session_auth:",
        url: str = "redis://localhost:6379/0",
    ):
        """
        Initialize Redis storage adapter.

        Args:
            redis_client: redis.asyncio.Redis instance (created lazily from url if None)
            prefix: Key prefix
            url: Redis URL used when no client is given
        """
        self._redis = redis_client
        self._prefix = prefix
        self._url = url

    def _get_redis(self):
        """Lazy load Redis client."""
        if self._redis is None:
            try:
                import redis.asyncio as redis_asyncio
            except ImportError:
                raise ImportError("redis package required: pip install redis")
            self._redis = redis_asyncio.Redis.from_url(self._url, decode_responses=True)
        return self._redis

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get_item(self, key: str) -> Optional[str]:
        from redis.exceptions import RedisError

        try:
            value = await self._get_redis().get(self._key(key))
        except RedisError as e:
            raise StorageError(f"Redis read failed for {key}: {e}")

        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def set_item(self, key: str, value: str) -> None:
        from redis.exceptions import RedisError

        try:
            await self._get_redis().set(self._key(key), value)
        except RedisError as e:
            raise StorageError(f"Redis write failed for {key}: {e}")

    async def multi_remove(self, keys: Iterable[str]) -> None:
        from redis.exceptions import RedisError

        redis_keys = [self._key(k) for k in keys]
        if not redis_keys:
            return
        try:
            await self._get_redis().delete(*redis_keys)
        except RedisError as e:
            raise StorageError(f"Redis delete failed: {e}")

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
