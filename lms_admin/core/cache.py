"""
Redis-backed cache for derived, recomputable data (dashboard statistics).

The cache is an optimization, never a dependency: every read/write error is
logged and swallowed, and callers fall back to the database.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from lms_admin.core.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheClient:
    """Single shared async Redis connection plus an ``is_open`` flag.

    ``is_open`` only flips to True after a successful ping from
    :meth:`connect_forever`; until then reads and writes are skipped.
    """

    def __init__(self, client: aioredis.Redis, retry_delay: float = 5) -> None:
        self.client = client
        self.retry_delay = retry_delay
        self.is_open = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "CacheClient":
        client = aioredis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            password=settings.redis_password or None,
            db=settings.redis_db,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        return cls(client, retry_delay=settings.cache_retry_delay_seconds)

    async def connect_forever(self) -> None:
        """Ping until the server answers. Fixed delay between attempts, no cap."""
        while True:
            try:
                await self.client.ping()
            except (RedisError, OSError) as e:
                self.is_open = False
                logger.warning("Redis connection error: %s; retrying in %ss", e, self.retry_delay)
                await asyncio.sleep(self.retry_delay)
                continue
            self.is_open = True
            logger.info("Redis connected")
            return

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self.client.setex(key, ttl, value)

    async def keys(self, pattern: str) -> List[str]:
        return [key async for key in self.client.scan_iter(match=pattern)]

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self.client.delete(*keys)

    async def close(self) -> None:
        self.is_open = False
        await self.client.aclose()


async def cache_or_fetch(
    cache: Optional[CacheClient],
    key: str,
    ttl: int,
    fetch: Callable[[], Awaitable[T]],
) -> T:
    """Return the cached JSON value for ``key`` or compute, store with TTL, and return it."""
    usable = cache is not None and cache.is_open
    if usable:
        try:
            cached = await cache.get(key)
            if cached:
                logger.debug("Cache hit for %s", key)
                return json.loads(cached)
        except Exception as e:
            logger.warning("Redis get error for %s: %s", key, e)

    data = await fetch()

    if usable:
        try:
            await cache.set(key, json.dumps(data, default=str), ttl)
        except Exception as e:
            logger.warning("Redis set error for %s: %s", key, e)
    return data


async def clear_namespace(cache: Optional[CacheClient], namespace: str) -> bool:
    """Delete every key under ``<namespace>:*``. False when the cache is unavailable."""
    if cache is None or not cache.is_open:
        return False
    try:
        keys = await cache.keys(f"{namespace}:*")
        if keys:
            await cache.delete(*keys)
        return True
    except Exception as e:
        logger.warning("Redis clear cache error: %s", e)
        return False
