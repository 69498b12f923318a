"""Order Ledger: OrderService, owner-scoped CRUD for received and placed orders."""
import logging
from decimal import Decimal
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from order_ledger.core.cache import View
from order_ledger.core.exceptions import AuthenticationError, ConflictError, NotFoundError
from order_ledger.db.errors import store_errors
from order_ledger.models import FulfillmentLink, OrderStatus, PlacedOrder, ReceivedOrder
from order_ledger.services.validation import (
    validate_placed_order,
    validate_placed_order_update,
    validate_received_order,
    validate_received_order_update,
)

logger = logging.getLogger(__name__)

OrderModel = TypeVar("OrderModel", ReceivedOrder, PlacedOrder)


def require_owner(owner_id: UUID | None) -> UUID:
    """Every store and linker operation needs a resolved owner."""
    if owner_id is None:
        raise AuthenticationError()
    return owner_id


async def _next_order_number(db: AsyncSession, model: type[OrderModel], owner_id: UUID) -> int:
    result = await db.execute(
        select(func.coalesce(func.max(model.order_number), 0)).where(model.owner_id == owner_id)
    )
    return int(result.scalar_one()) + 1


async def _get_owned(db: AsyncSession, model: type[OrderModel], owner_id: UUID, order_id: UUID) -> OrderModel | None:
    result = await db.execute(select(model).where(model.id == order_id, model.owner_id == owner_id))
    return result.scalar_one_or_none()


async def _list_owned(db: AsyncSession, model: type[OrderModel], owner_id: UUID) -> list[OrderModel]:
    result = await db.execute(
        select(model).where(model.owner_id == owner_id).order_by(model.order_number.desc())
    )
    return list(result.scalars().all())


class OrderService:
    """CRUD for ReceivedOrder and PlacedOrder. Derived fields are left to FulfillmentService."""

    RECEIVED_VIEWS: tuple[View, ...] = (View.RECEIVED,)
    PLACED_VIEWS: tuple[View, ...] = (View.PLACED,)
    # The links view embeds full order rows, so an edit makes it stale too.
    # Creates and deletes never touch it: a linked order cannot be deleted.
    RECEIVED_UPDATE_VIEWS: tuple[View, ...] = (View.RECEIVED, View.LINKS)
    PLACED_UPDATE_VIEWS: tuple[View, ...] = (View.PLACED, View.LINKS)

    # ── Received orders ─────────────────────────────────────────────────────

    @staticmethod
    async def list_received(db: AsyncSession, owner_id: UUID | None) -> list[ReceivedOrder]:
        """All received orders for the owner, newest order number first."""
        owner_id = require_owner(owner_id)
        with store_errors():
            return await _list_owned(db, ReceivedOrder, owner_id)

    @staticmethod
    async def get_received(db: AsyncSession, owner_id: UUID | None, order_id: UUID) -> ReceivedOrder:
        owner_id = require_owner(owner_id)
        with store_errors():
            order = await _get_owned(db, ReceivedOrder, owner_id, order_id)
        if not order:
            raise NotFoundError("Order received not found")
        return order

    @staticmethod
    async def create_received(db: AsyncSession, owner_id: UUID | None, data: Any) -> ReceivedOrder:
        """Create a received order in `confirmed` status with nothing dispatched."""
        owner_id = require_owner(owner_id)
        validated = validate_received_order(data)
        with store_errors():
            order = ReceivedOrder(
                owner_id=owner_id,
                order_number=await _next_order_number(db, ReceivedOrder, owner_id),
                **validated.model_dump(),
                dispatched_quantity=Decimal("0"),
                status=OrderStatus.CONFIRMED.value,
            )
            db.add(order)
            await db.flush()
            await db.refresh(order)
        logger.info("Created received order #%s (%s) for owner %s", order.order_number, order.id, owner_id)
        return order

    @staticmethod
    async def update_received(db: AsyncSession, owner_id: UUID | None, order_id: UUID, data: Any) -> ReceivedOrder:
        """Apply a partial update of directly-mutable fields. Recomputes nothing."""
        owner_id = require_owner(owner_id)
        updates = validate_received_order_update(data).model_dump(exclude_unset=True)
        order = await OrderService.get_received(db, owner_id, order_id)
        with store_errors():
            for field, value in updates.items():
                setattr(order, field, value)
            await db.flush()
            await db.refresh(order)
        return order

    @staticmethod
    async def delete_received(db: AsyncSession, owner_id: UUID | None, order_id: UUID) -> None:
        order = await OrderService.get_received(db, owner_id, order_id)
        await OrderService._ensure_unlinked(db, FulfillmentLink.order_received_id, order.id, "Order received")
        with store_errors():
            await db.delete(order)
            await db.flush()
        logger.info("Deleted received order #%s (%s)", order.order_number, order.id)

    # ── Placed orders ───────────────────────────────────────────────────────

    @staticmethod
    async def list_placed(db: AsyncSession, owner_id: UUID | None) -> list[PlacedOrder]:
        """All placed orders for the owner, newest order number first."""
        owner_id = require_owner(owner_id)
        with store_errors():
            return await _list_owned(db, PlacedOrder, owner_id)

    @staticmethod
    async def get_placed(db: AsyncSession, owner_id: UUID | None, order_id: UUID) -> PlacedOrder:
        owner_id = require_owner(owner_id)
        with store_errors():
            order = await _get_owned(db, PlacedOrder, owner_id, order_id)
        if not order:
            raise NotFoundError("Order placed not found")
        return order

    @staticmethod
    async def create_placed(db: AsyncSession, owner_id: UUID | None, data: Any) -> PlacedOrder:
        """Create a placed order with its whole ordered quantity still unallocated."""
        owner_id = require_owner(owner_id)
        validated = validate_placed_order(data)
        with store_errors():
            order = PlacedOrder(
                owner_id=owner_id,
                order_number=await _next_order_number(db, PlacedOrder, owner_id),
                **validated.model_dump(),
                remaining_quantity=validated.ordered_quantity,
                status=OrderStatus.CONFIRMED.value,
            )
            db.add(order)
            await db.flush()
            await db.refresh(order)
        logger.info("Created placed order #%s (%s) for owner %s", order.order_number, order.id, owner_id)
        return order

    @staticmethod
    async def update_placed(db: AsyncSession, owner_id: UUID | None, order_id: UUID, data: Any) -> PlacedOrder:
        """
        Apply a partial update of directly-mutable fields, e.g. received_quantity.
        remaining_quantity is allocation-derived and is not touched.
        """
        owner_id = require_owner(owner_id)
        updates = validate_placed_order_update(data).model_dump(exclude_unset=True)
        order = await OrderService.get_placed(db, owner_id, order_id)
        with store_errors():
            for field, value in updates.items():
                setattr(order, field, value)
            await db.flush()
            await db.refresh(order)
        return order

    @staticmethod
    async def delete_placed(db: AsyncSession, owner_id: UUID | None, order_id: UUID) -> None:
        order = await OrderService.get_placed(db, owner_id, order_id)
        await OrderService._ensure_unlinked(db, FulfillmentLink.order_placed_id, order.id, "Order placed")
        with store_errors():
            await db.delete(order)
            await db.flush()
        logger.info("Deleted placed order #%s (%s)", order.order_number, order.id)

    @staticmethod
    async def _ensure_unlinked(db: AsyncSession, column, order_id: UUID, label: str) -> None:
        """Deletion is restricted while fulfillment links still reference the order."""
        with store_errors():
            result = await db.execute(select(func.count(FulfillmentLink.id)).where(column == order_id))
            active = result.scalar_one()
        if active:
            raise ConflictError(
                f"{label} has {active} active fulfillment link(s); delete them before deleting the order"
            )
