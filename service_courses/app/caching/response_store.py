"""
Validator stores keyed by request URI.

The store retains the last validator issued for a URI until its max-age
elapses or a write invalidates it. Concurrent writers follow
last-writer-wins per key.
"""

import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import redis.asyncio as redis

from shared.logging import get_logger


@dataclass(frozen=True)
class StoredValidator:
    """Validator issued for a URI and when it was stored."""
    validator: str
    stored_at: float

    def to_json(self) -> str:
        return json.dumps({"validator": self.validator, "stored_at": self.stored_at})

    @classmethod
    def from_json(cls, raw: str) -> "StoredValidator":
        data = json.loads(raw)
        return cls(validator=data["validator"], stored_at=float(data["stored_at"]))


class ResponseStore(ABC):
    """Interface of the response store consulted by the response pipeline."""

    @abstractmethod
    async def get(self, key: str) -> Optional[StoredValidator]:
        """Return the stored validator for a key, or None when absent or expired."""

    @abstractmethod
    async def set(self, key: str, entry: StoredValidator, ttl: int) -> bool:
        """Store a validator for ``ttl`` seconds."""

    @abstractmethod
    async def invalidate(self, prefix: str) -> int:
        """Drop every key starting with ``prefix``; returns the number removed."""

    async def close(self) -> None:
        return None


class InMemoryResponseStore(ResponseStore):
    """Process-local store with TTL eviction on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[StoredValidator, float]] = {}
        self.logger = get_logger("courses.response_store")

    async def get(self, key: str) -> Optional[StoredValidator]:
        item = self._entries.get(key)
        if item is None:
            return None
        entry, expires_at = item
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return entry

    async def set(self, key: str, entry: StoredValidator, ttl: int) -> bool:
        if ttl <= 0:
            return False
        self._entries[key] = (entry, self._clock() + ttl)
        return True

    async def invalidate(self, prefix: str) -> int:
        doomed = [key for key in self._entries if key.startswith(prefix)]
        for key in doomed:
            del self._entries[key]
        if doomed:
            self.logger.debug("Invalidated stored validators", prefix=prefix, count=len(doomed))
        return len(doomed)

    def __len__(self) -> int:
        return len(self._entries)


def _escape_glob(value: str) -> str:
    for char in ("\\", "*", "?", "[", "]"):
        value = value.replace(char, "\\" + char)
    return value


class RedisResponseStore(ResponseStore):
    """Shared store backed by Redis; TTL eviction is delegated to Redis expiry.

    Store failures are logged and treated as misses so a Redis outage only
    costs a recompute.
    """

    def __init__(self, redis_url: str, namespace: str = "courses:validators:"):
        self.redis_url = redis_url
        self.namespace = namespace
        self.logger = get_logger("courses.response_store.redis")
        self._redis: Optional[redis.Redis] = None

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
        return self._redis

    def _make_key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    async def get(self, key: str) -> Optional[StoredValidator]:
        try:
            client = await self._get_redis()
            raw = await client.get(self._make_key(key))
        except Exception as exc:
            self.logger.error("Validator lookup failed", key=key, error=str(exc))
            return None
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            return StoredValidator.from_json(raw)
        except (ValueError, KeyError) as exc:
            self.logger.warning("Discarding unreadable stored validator", key=key, error=str(exc))
            return None

    async def set(self, key: str, entry: StoredValidator, ttl: int) -> bool:
        if ttl <= 0:
            return False
        try:
            client = await self._get_redis()
            await client.setex(self._make_key(key), ttl, entry.to_json())
            return True
        except Exception as exc:
            self.logger.error("Validator store failed", key=key, error=str(exc))
            return False

    async def invalidate(self, prefix: str) -> int:
        try:
            client = await self._get_redis()
            pattern = f"{_escape_glob(self._make_key(prefix))}*"
            keys = [key async for key in client.scan_iter(match=pattern)]
            if keys:
                await client.delete(*keys)
                self.logger.info("Invalidated stored validators", prefix=prefix, count=len(keys))
            return len(keys)
        except Exception as exc:
            self.logger.error("Validator invalidation failed", prefix=prefix, error=str(exc))
            return 0

    async def ping(self) -> bool:
        client = await self._get_redis()
        return bool(await client.ping())

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
