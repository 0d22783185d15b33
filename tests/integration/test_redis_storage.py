"""
Integration tests for Redis storage adapter.

Requires Redis running on localhost:6379
Skip tests if Redis is not available.
"""

import pytest
import pytest_asyncio

from session_auth.adapters import ManualClock
from session_auth.services.credential_store import CredentialStore, TOKEN_KEY


@pytest_asyncio.fixture
async def redis_adapter():
    """Create Redis storage adapter (skip if Redis unavailable)."""
    try:
        import redis
        import redis.asyncio as redis_asyncio
        from session_auth.adapters import RedisStorageAdapter
    except ImportError:
        pytest.skip("redis package not installed")

    client = redis_asyncio.Redis(host="localhost", port=6379, decode_responses=True)
    try:
        await client.ping()
    except (redis.exceptions.ConnectionError, OSError):
        await client.aclose()
        pytest.skip("Redis not available")

    adapter = RedisStorageAdapter(redis_client=client, prefix="test:session_auth:")
    yield adapter

    # Cleanup: delete all test keys
    async for key in client.scan_iter("test:session_auth:*"):
        await client.delete(key)
    await adapter.close()


class TestRedisStorageAdapter:
    """Test Redis key-value storage."""

    @pytest.mark.asyncio
    async def test_set_and_get(self, redis_adapter):
        await redis_adapter.set_item("a", "1")
        assert await redis_adapter.get_item("a") == "1"

    @pytest.mark.asyncio
    async def test_missing_key(self, redis_adapter):
        assert await redis_adapter.get_item("missing") is None

    @pytest.mark.asyncio
    async def test_multi_remove(self, redis_adapter):
        await redis_adapter.set_item("a", "1")
        await redis_adapter.set_item("b", "2")

        await redis_adapter.multi_remove(["a", "b", "missing"])

        assert await redis_adapter.get_item("a") is None
        assert await redis_adapter.get_item("b") is None

    @pytest.mark.asyncio
    async def test_multi_remove_nothing(self, redis_adapter):
        await redis_adapter.multi_remove([])

    @pytest.mark.asyncio
    async def test_credential_store_on_redis(self, redis_adapter):
        clock = ManualClock()
        store = CredentialStore(storage=redis_adapter, clock=clock)

        await store.set_credential("shared", expiry_hours=1)
        assert await store.get_token() == "shared"

        clock.advance(hours=2)
        assert await store.get_token() is None
        assert await redis_adapter.get_item(TOKEN_KEY) is None
