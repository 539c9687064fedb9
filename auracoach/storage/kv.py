"""Key-value persistence collaborator.

All durable state lives behind ``KeyValueStore``. Values are JSON strings;
callers own encoding. Every write is a single independent key, there are no
multi-key transactions.
"""

import re
import time
from typing import Protocol

import redis
import redis.asyncio as aioredis
from loguru import logger

from auracoach.config.settings import Settings
from auracoach.core.errors import PersistenceError


_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def _glob_escape(prefix: str) -> str:
    """Escape Redis glob metacharacters so ``prefix`` matches literally."""
    return _GLOB_SPECIAL.sub(r"\\\1", prefix)


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def put(self, key: str, value: str, ttl_seconds: int | None = None) -> None: ...

    async def increment(self, key: str, ttl_seconds: int) -> int: ...

    async def list_keys(self, prefix: str, limit: int | None = None) -> list[str]: ...

    async def close(self) -> None: ...


class RedisKeyValueStore:
    """Store backed by Redis through ``redis.asyncio``.

    Redis errors are re-raised as ``PersistenceError`` so callers deal with a
    single failure type regardless of backend.
    """

    def __init__(self, client: aioredis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueStore":
        return cls(aioredis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        try:
            return await self._client.get(key)
        except redis.RedisError as e:
            logger.error("Redis GET failed", key=key, error=str(e))
            raise PersistenceError(f"Failed to read {key}") from e

    async def put(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except redis.RedisError as e:
            logger.error("Redis SET failed", key=key, error=str(e))
            raise PersistenceError(f"Failed to write {key}") from e

    async def increment(self, key: str, ttl_seconds: int) -> int:
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, ttl_seconds)
                count, _ = await pipe.execute()
        except redis.RedisError as e:
            logger.error("Redis INCR failed", key=key, error=str(e))
            raise PersistenceError(f"Failed to increment {key}") from e
        return int(count)

    async def list_keys(self, prefix: str, limit: int | None = None) -> list[str]:
        """Return keys starting with ``prefix``, newest (lexicographically last) first."""
        try:
            keys = [key async for key in self._client.scan_iter(match=f"{_glob_escape(prefix)}*", count=200)]
        except redis.RedisError as e:
            logger.error("Redis SCAN failed", prefix=prefix, error=str(e))
            raise PersistenceError(f"Failed to list keys for {prefix}") from e
        keys.sort(reverse=True)
        return keys if limit is None else keys[:limit]

    async def close(self) -> None:
        await self._client.aclose()


class InMemoryKeyValueStore:
    """Process-local store for development and tests.

    Not shared between processes; expiry is checked lazily on read.
    """

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, float | None]] = {}

    def _live(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= time.monotonic():
            del self._data[key]
            return None
        return value

    async def get(self, key: str) -> str | None:
        return self._live(key)

    async def put(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        expires_at = time.monotonic() + ttl_seconds if ttl_seconds else None
        self._data[key] = (value, expires_at)

    async def increment(self, key: str, ttl_seconds: int) -> int:
        current = self._live(key)
        count = int(current) + 1 if current is not None else 1
        expires_at = self._data[key][1] if current is not None else time.monotonic() + ttl_seconds
        self._data[key] = (str(count), expires_at)
        return count

    async def list_keys(self, prefix: str, limit: int | None = None) -> list[str]:
        keys = sorted((key for key in list(self._data) if key.startswith(prefix) and self._live(key) is not None), reverse=True)
        return keys if limit is None else keys[:limit]

    async def close(self) -> None:
        self._data.clear()


def build_store(config: Settings) -> KeyValueStore:
    if config.kv_backend == "memory":
        logger.warning("Using in-memory key-value store; data is lost on restart")
        return InMemoryKeyValueStore()
    logger.info("Using Redis key-value store")
    return RedisKeyValueStore.from_url(config.redis_url)
