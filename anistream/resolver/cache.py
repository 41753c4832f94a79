"""
Short-lived cache of successful resolutions.

Upstream stream URLs expire, so entries live for a few minutes at most. The
cache is best effort: backend errors are logged and treated as misses, and
only successful results are ever written.
"""
from __future__ import annotations

import json
import logging
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..settings import ResolverSettings
from .matching import normalize_title
from .models import ResolutionResult

logger = logging.getLogger(__name__)

KEY_PREFIX = "anistream:resolution"


def cache_key(title: str, episode_number: float, preferred_provider: Optional[str] = None) -> str:
    return f"{normalize_title(title)}|{episode_number:g}|{preferred_provider or '*'}"


class ResolutionCache:
    """Interface shared by every cache backend."""

    backend = "none"

    async def get(self, key: str) -> Optional[ResolutionResult]:
        return None

    async def set(self, key: str, result: ResolutionResult) -> None:
        return None

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class NullResolutionCache(ResolutionCache):
    """Disabled cache; every lookup misses."""


class MemoryResolutionCache(ResolutionCache):
    """Process-local TTL cache bounded to ``max_entries`` (oldest evicted first)."""

    backend = "memory"

    def __init__(
        self,
        *,
        ttl_seconds: int = 300,
        max_entries: int = 512,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, ResolutionResult]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def _cleanup_expired(self) -> None:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            self._entries.pop(key, None)

    async def get(self, key: str) -> Optional[ResolutionResult]:
        cached = self._entries.get(key)
        if cached is None:
            return None
        expires_at, result = cached
        if expires_at <= self._clock():
            self._entries.pop(key, None)
            return None
        return result

    async def set(self, key: str, result: ResolutionResult) -> None:
        self._cleanup_expired()
        self._entries.pop(key, None)
        self._entries[key] = (self._clock() + self._ttl, result)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)


class RedisResolutionCache(ResolutionCache):
    """Cache stored in Redis with native key expiry."""

    backend = "redis"

    def __init__(self, connection: Redis, *, ttl_seconds: int = 300) -> None:
        self._connection = connection
        self._ttl = ttl_seconds

    @staticmethod
    def create_connection(url: str) -> Redis:
        """Instantiate an asyncio Redis client, supporting fakeredis for tests."""

        if url.startswith("fakeredis://"):
            import fakeredis

            return fakeredis.FakeAsyncRedis(decode_responses=True)
        return Redis.from_url(url, decode_responses=True)

    @staticmethod
    def _redis_key(key: str) -> str:
        return f"{KEY_PREFIX}:{key}"

    async def get(self, key: str) -> Optional[ResolutionResult]:
        try:
            raw = await self._connection.get(self._redis_key(key))
        except RedisError as exc:
            logger.warning("Resolution cache read failed: %s", exc)
            return None
        if not raw:
            return None
        try:
            return ResolutionResult.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding unreadable cache entry %s: %s", key, exc)
            return None

    async def set(self, key: str, result: ResolutionResult) -> None:
        payload = json.dumps(result.to_dict(), ensure_ascii=False)
        try:
            await self._connection.set(self._redis_key(key), payload, ex=self._ttl)
        except RedisError as exc:
            logger.warning("Resolution cache write failed: %s", exc)

    async def ping(self) -> bool:
        try:
            return bool(await self._connection.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await self._connection.aclose()


def create_cache(settings: ResolverSettings) -> ResolutionCache:
    if settings.cache_backend == "redis":
        connection = RedisResolutionCache.create_connection(settings.redis_url)
        return RedisResolutionCache(connection, ttl_seconds=settings.cache_ttl_seconds)
    if settings.cache_backend == "memory":
        return MemoryResolutionCache(
            ttl_seconds=settings.cache_ttl_seconds, max_entries=settings.cache_max_entries
        )
    return NullResolutionCache()
