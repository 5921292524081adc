"""Scoped persistent key-value storage for cached blobs."""

from typing import Protocol

import redis.asyncio as aioredis

from bmtc_resolver.config import settings


class KeyValueStore(Protocol):
    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisStore:
    """KeyValueStore backed by Redis; every key is prefixed with the cache scope."""

    def __init__(self, url: str | None = None, scope: str | None = None) -> None:
        self._url = url or settings.redis_url
        self._scope = scope or settings.cache_scope
        self._redis: aioredis.Redis | None = None

    async def connect(self) -> None:
        self._redis = aioredis.from_url(self._url, decode_responses=False)

    async def close(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    def _scoped(self, key: str) -> str:
        return f"{self._scope}:{key}"

    def _conn(self) -> aioredis.Redis:
        if self._redis is None:
            raise RuntimeError("Redis not initialized")
        return self._redis

    async def get(self, key: str) -> bytes | None:
        return await self._conn().get(self._scoped(key))

    async def set(self, key: str, value: bytes) -> None:
        await self._conn().set(self._scoped(key), value)

    async def delete(self, key: str) -> None:
        await self._conn().delete(self._scoped(key))
