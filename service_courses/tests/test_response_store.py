"""
Unit tests for validator response stores.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from service_courses.app.caching.response_store import (
    InMemoryResponseStore,
    RedisResponseStore,
    StoredValidator,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestInMemoryResponseStore:
    """Test cases for InMemoryResponseStore."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def store(self, clock):
        return InMemoryResponseStore(clock=clock)

    @pytest.mark.asyncio
    async def test_set_and_get(self, store):
        """Test a stored validator is returned before expiry."""
        entry = StoredValidator('"v1"', 1.0)

        assert await store.set("/api/authors", entry, ttl=60) is True
        assert await store.get("/api/authors") == entry

    @pytest.mark.asyncio
    async def test_expires_after_ttl(self, store, clock):
        """Test entries vanish once max-age has elapsed."""
        await store.set("/api/authors", StoredValidator('"v1"', 1.0), ttl=60)

        clock.now += 60

        assert await store.get("/api/authors") is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_zero_ttl_not_stored(self, store):
        """Test non-positive TTLs are ignored."""
        assert await store.set("/api/authors", StoredValidator('"v1"', 1.0), ttl=0) is False
        assert await store.get("/api/authors") is None

    @pytest.mark.asyncio
    async def test_last_writer_wins(self, store):
        """Test a later write replaces the earlier validator."""
        await store.set("/api/authors", StoredValidator('"v1"', 1.0), ttl=60)
        await store.set("/api/authors", StoredValidator('"v2"', 2.0), ttl=60)

        assert (await store.get("/api/authors")).validator == '"v2"'

    @pytest.mark.asyncio
    async def test_invalidate_prefix(self, store):
        """Test invalidation removes only keys under the prefix."""
        await store.set("/api/authors?orderBy=age", StoredValidator('"a"', 1.0), ttl=60)
        await store.set("/api/authors/1/courses", StoredValidator('"b"', 1.0), ttl=60)
        await store.set("/health", StoredValidator('"c"', 1.0), ttl=60)

        removed = await store.invalidate("/api/authors")

        assert removed == 2
        assert await store.get("/health") is not None
        assert await store.get("/api/authors/1/courses") is None


async def _aiter(items):
    for item in items:
        yield item


class TestRedisResponseStore:
    """Test cases for RedisResponseStore."""

    @pytest.fixture
    def redis_client(self):
        client = AsyncMock()
        client.scan_iter = MagicMock()
        return client

    @pytest.fixture
    def store(self, redis_client):
        store = RedisResponseStore("redis://localhost:6379/0")
        store._redis = redis_client
        return store

    @pytest.mark.asyncio
    async def test_get_hit(self, store, redis_client):
        """Test stored JSON is decoded into a StoredValidator."""
        redis_client.get.return_value = StoredValidator('"v1"', 12.5).to_json()

        entry = await store.get("/api/authors")

        assert entry == StoredValidator('"v1"', 12.5)
        redis_client.get.assert_called_once_with("courses:validators:/api/authors")

    @pytest.mark.asyncio
    async def test_get_miss(self, store, redis_client):
        """Test missing keys return None."""
        redis_client.get.return_value = None

        assert await store.get("/api/authors") is None

    @pytest.mark.asyncio
    async def test_get_error_is_a_miss(self, store, redis_client):
        """Test Redis failures degrade to a recompute."""
        redis_client.get.side_effect = ConnectionError("redis down")

        assert await store.get("/api/authors") is None

    @pytest.mark.asyncio
    async def test_get_unreadable_entry(self, store, redis_client):
        """Test corrupt entries are discarded."""
        redis_client.get.return_value = "not-json"

        assert await store.get("/api/authors") is None

    @pytest.mark.asyncio
    async def test_set_uses_ttl(self, store, redis_client):
        """Test validators are written with SETEX and the route max-age."""
        entry = StoredValidator('"v1"', 12.5)

        assert await store.set("/api/authors", entry, ttl=60) is True
        redis_client.setex.assert_called_once_with("courses:validators:/api/authors", 60, entry.to_json())

    @pytest.mark.asyncio
    async def test_set_error(self, store, redis_client):
        """Test write failures are reported as False."""
        redis_client.setex.side_effect = ConnectionError("redis down")

        assert await store.set("/api/authors", StoredValidator('"v1"', 1.0), ttl=60) is False

    @pytest.mark.asyncio
    async def test_invalidate_prefix(self, store, redis_client):
        """Test prefix invalidation scans and deletes matching keys."""
        keys = ["courses:validators:/api/authors", "courses:validators:/api/authors?orderBy=age"]
        redis_client.scan_iter.return_value = _aiter(keys)

        removed = await store.invalidate("/api/authors")

        assert removed == 2
        redis_client.scan_iter.assert_called_once_with(match="courses:validators:/api/authors*")
        redis_client.delete.assert_called_once_with(*keys)

    @pytest.mark.asyncio
    async def test_invalidate_escapes_glob_characters(self, store, redis_client):
        """Test literal glob characters in the prefix are escaped."""
        redis_client.scan_iter.return_value = _aiter([])

        assert await store.invalidate("/api/authors?fields=[id]") == 0
        redis_client.scan_iter.assert_called_once_with(
            match="courses:validators:/api/authors\\?fields=\\[id\\]*"
        )
        redis_client.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_close(self, store, redis_client):
        """Test the connection is released."""
        await store.close()

        redis_client.aclose.assert_awaited_once()
        assert store._redis is None
