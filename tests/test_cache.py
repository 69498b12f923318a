from __future__ import annotations

import unittest
import uuid

from redis.exceptions import ConnectionError as RedisConnectionError

from order_ledger.core.cache import View, ViewCache, generation_key, view_cache_key
from tests.support import FakeRedis


class UnreachableRedis:
    async def get(self, key):
        raise RedisConnectionError("Connection refused")

    async def incr(self, key):
        raise RedisConnectionError("Connection refused")

    async def delete(self, *keys):
        raise RedisConnectionError("Connection refused")

    def pipeline(self, transaction=True):
        raise RedisConnectionError("Connection refused")


class ViewCacheTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.redis = FakeRedis()
        self.cache = ViewCache(self.redis, ttl_seconds=60)
        self.owner_id = uuid.uuid4()

    async def test_read_through_round_trip(self) -> None:
        generation = await self.cache.generation(self.owner_id)
        await self.cache.set(self.owner_id, View.PLACED, "[]", generation)
        self.assertEqual(await self.cache.get(self.owner_id, View.PLACED), "[]")

    async def test_invalidation_bumps_generation_and_drops_views(self) -> None:
        await self.cache.set(self.owner_id, View.RECEIVED, "[1]", None)
        await self.cache.invalidate(self.owner_id, (View.RECEIVED, View.LINKS))
        self.assertIsNone(await self.cache.get(self.owner_id, View.RECEIVED))
        self.assertEqual(self.redis.counters[generation_key(self.owner_id)], "1")
        self.assertEqual(
            self.redis.deleted,
            [view_cache_key(self.owner_id, View.RECEIVED), view_cache_key(self.owner_id, View.LINKS)],
        )

    async def test_read_that_started_before_a_write_is_not_cached(self) -> None:
        generation = await self.cache.generation(self.owner_id)
        await self.cache.invalidate(self.owner_id, (View.PLACED,))

        await self.cache.set(self.owner_id, View.PLACED, '["stale"]', generation)
        self.assertIsNone(await self.cache.get(self.owner_id, View.PLACED))

    async def test_invalidation_landing_mid_write_discards_it(self) -> None:
        generation = await self.cache.generation(self.owner_id)

        async def concurrent_write() -> None:
            await self.cache.invalidate(self.owner_id, (View.LINKS,))

        self.redis.before_exec = concurrent_write
        await self.cache.set(self.owner_id, View.LINKS, '["stale"]', generation)
        self.assertEqual(self.redis.store, {})

    async def test_other_owners_writes_do_not_block_caching(self) -> None:
        generation = await self.cache.generation(self.owner_id)
        await self.cache.invalidate(uuid.uuid4(), (View.PLACED,))
        await self.cache.set(self.owner_id, View.PLACED, "[]", generation)
        self.assertEqual(await self.cache.get(self.owner_id, View.PLACED), "[]")

    async def test_unreachable_redis_is_a_miss_not_a_failure(self) -> None:
        cache = ViewCache(UnreachableRedis(), ttl_seconds=60)
        self.assertIsNone(await cache.get(self.owner_id, View.LINKS))
        self.assertIsNone(await cache.generation(self.owner_id))
        await cache.set(self.owner_id, View.LINKS, "[]", None)
        await cache.invalidate(self.owner_id, (View.LINKS,))


if __name__ == "__main__":
    unittest.main()
