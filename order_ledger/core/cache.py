"""Order Ledger: Redis-backed cache for the per-owner read views."""
import logging
from enum import Enum
from typing import Optional
from uuid import UUID

import redis.asyncio as redis
from redis.exceptions import RedisError, WatchError

from order_ledger.config import get_settings

logger = logging.getLogger(__name__)

_settings = get_settings()
_redis: Optional[redis.Redis] = None


class View(str, Enum):
    """Logical read views a write can make stale."""

    RECEIVED = "orders-received"
    PLACED = "orders-placed"
    LINKS = "fulfillment-links"


def view_cache_key(owner_id: UUID | str, view: View) -> str:
    """Cache key for a view: view:{owner}:{view}"""
    return f"view:{owner_id}:{view.value}"


def generation_key(owner_id: UUID | str) -> str:
    """Counter bumped by every invalidation for the owner."""
    return f"view:{owner_id}:generation"


class ViewCache:
    """
    Advisory cache of serialized list views.
    Redis failures are logged and treated as misses; they never fail a request.

    Readers take `generation()` before querying the store and pass it to `set()`.
    The write is dropped if an invalidation ran in between, so a slow read can
    never repopulate a view with rows older than a committed write.
    """

    def __init__(self, client: redis.Redis, ttl_seconds: int | None = None):
        self.client = client
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else _settings.VIEW_CACHE_TTL_SECONDS

    async def get(self, owner_id: UUID, view: View) -> str | None:
        try:
            return await self.client.get(view_cache_key(owner_id, view))
        except RedisError as exc:
            logger.warning("View cache read failed for %s: %s", view.value, exc)
            return None

    async def generation(self, owner_id: UUID) -> str | None:
        try:
            return await self.client.get(generation_key(owner_id))
        except RedisError as exc:
            logger.warning("View cache generation read failed: %s", exc)
            return None

    async def set(self, owner_id: UUID, view: View, payload: str, generation: str | None = None) -> None:
        """Store `payload` unless the owner's views were invalidated since `generation` was read."""
        gen_key = generation_key(owner_id)
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                await pipe.watch(gen_key)
                if await pipe.get(gen_key) != generation:
                    logger.debug("Skipped stale %s write for owner %s", view.value, owner_id)
                    return
                pipe.multi()
                pipe.setex(view_cache_key(owner_id, view), self.ttl_seconds, payload)
                await pipe.execute()
        except WatchError:
            logger.debug("Invalidated during %s write for owner %s; not cached", view.value, owner_id)
        except RedisError as exc:
            logger.warning("View cache write failed for %s: %s", view.value, exc)

    async def invalidate(self, owner_id: UUID, views: tuple[View, ...]) -> None:
        """Drop the given views for one owner. Call right after the write commits."""
        if not views:
            return
        keys = [view_cache_key(owner_id, view) for view in views]
        try:
            await self.client.incr(generation_key(owner_id))
            await self.client.delete(*keys)
        except RedisError as exc:
            logger.warning("View cache invalidation failed for %s: %s", ", ".join(keys), exc)


async def get_redis() -> redis.Redis:
    """Get Redis connection (application cache DB 1)."""
    global _redis
    if _redis is None:
        _redis = redis.from_url(_settings.REDIS_URL, decode_responses=True)
    return _redis


async def get_view_cache() -> ViewCache:
    """Dependency: view cache bound to the shared Redis pool."""
    return ViewCache(await get_redis())


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
