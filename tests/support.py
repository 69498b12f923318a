from __future__ import annotations

import unittest
import uuid
from decimal import Decimal

from redis.exceptions import WatchError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from order_ledger.db.base import Base
from order_ledger.models import FulfillmentLink, PlacedOrder, ReceivedOrder
from order_ledger.services.order_service import OrderService


class FakePipeline:
    """WATCH/MULTI/EXEC over FakeRedis: queued writes are dropped if a watched key changed."""

    def __init__(self, redis: "FakeRedis") -> None:
        self.redis = redis
        self.watched: dict[str, str | None] = {}
        self.queued: list[tuple[str, str]] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.watched.clear()
        self.queued.clear()

    async def watch(self, *keys: str) -> None:
        self.watched = {key: await self.redis.get(key) for key in keys}

    async def get(self, key: str) -> str | None:
        return await self.redis.get(key)

    def multi(self) -> None:
        pass

    def setex(self, key: str, ttl: int, value: str) -> "FakePipeline":
        self.queued.append((key, value))
        return self

    async def execute(self) -> list[bool]:
        for key, seen in self.watched.items():
            if await self.redis.get(key) != seen:
                raise WatchError("Watched variable changed.")
        if self.redis.before_exec is not None:
            await self.redis.before_exec()
            self.redis.before_exec = None
            return await self.execute()
        for key, value in self.queued:
            self.redis.store[key] = value
        return [True] * len(self.queued)


class FakeRedis:
    """Dict-backed stand-in for the redis.asyncio calls ViewCache makes.

    `store` holds cached views only; generation counters live in `counters`.
    `before_exec`, when set, runs once just before a pipeline commits.
    """

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.counters: dict[str, str] = {}
        self.deleted: list[str] = []
        self.before_exec = None

    async def get(self, key: str) -> str | None:
        return self.store.get(key, self.counters.get(key))

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = value

    async def incr(self, key: str) -> int:
        value = int(self.counters.get(key, "0")) + 1
        self.counters[key] = str(value)
        return value

    async def delete(self, *keys: str) -> int:
        self.deleted.extend(keys)
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)


class LedgerTestCase(unittest.IsolatedAsyncioTestCase):
    """Fresh in-memory SQLite schema per test."""

    async def asyncSetUp(self) -> None:
        self.engine = create_async_engine(
            "sqlite+aiosqlite://",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.session_maker = async_sessionmaker(self.engine, expire_on_commit=False, autoflush=False)
        self.db = self.session_maker()
        self.owner_id = uuid.uuid4()
        self.other_owner_id = uuid.uuid4()

    async def asyncTearDown(self) -> None:
        await self.db.close()
        await self.engine.dispose()

    async def make_received(self, ordered_quantity="100", owner_id=None, **fields) -> ReceivedOrder:
        data = {"customer_name": "Acme Textiles", "item_name": "Cotton twill", "ordered_quantity": ordered_quantity}
        data.update(fields)
        return await OrderService.create_received(self.db, owner_id or self.owner_id, data)

    async def make_placed(self, ordered_quantity="100", owner_id=None, **fields) -> PlacedOrder:
        data = {"party_name": "Northern Mills", "item_name": "Cotton twill", "ordered_quantity": ordered_quantity}
        data.update(fields)
        return await OrderService.create_placed(self.db, owner_id or self.owner_id, data)

    async def link_count(self) -> int:
        result = await self.db.execute(select(func.count(FulfillmentLink.id)))
        return result.scalar_one()

    async def linked_total_for_placed(self, placed_id) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(FulfillmentLink.quantity_fulfilled), 0)).where(
                FulfillmentLink.order_placed_id == placed_id
            )
        )
        return Decimal(str(result.scalar_one()))
