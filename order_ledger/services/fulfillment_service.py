"""Order Ledger: FulfillmentService, allocation links and derived-quantity reconciliation."""
import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from order_ledger.core.cache import View
from order_ledger.core.exceptions import NotFoundError
from order_ledger.db.errors import store_errors
from order_ledger.models import FulfillmentLink, OrderStatus, PlacedOrder, ReceivedOrder
from order_ledger.services.order_service import require_owner
from order_ledger.services.validation import validate_fulfillment_link

logger = logging.getLogger(__name__)


class FulfillmentService:
    """
    Creates and deletes fulfillment links and keeps both sides' derived fields
    consistent with the active link set:

    - PlacedOrder.remaining_quantity = ordered_quantity - sum(quantity_fulfilled)
    - ReceivedOrder.dispatched_quantity = sum(quantity_fulfilled)
    - status is `fulfilled` when the two sides balance exactly, else `confirmed`

    Over-allocation and over-fulfillment are recorded, not rejected.
    The link write and both recomputations share the caller's transaction.
    """

    # Views made stale by any link write
    AFFECTED_VIEWS: tuple[View, ...] = (View.LINKS, View.RECEIVED, View.PLACED)

    @staticmethod
    def _with_orders(stmt):
        return stmt.options(
            selectinload(FulfillmentLink.order_received),
            selectinload(FulfillmentLink.order_placed),
        )

    @staticmethod
    async def list_links(db: AsyncSession, owner_id: UUID | None) -> list[FulfillmentLink]:
        """All links for the owner with both orders embedded, newest first."""
        owner_id = require_owner(owner_id)
        stmt = FulfillmentService._with_orders(
            select(FulfillmentLink)
            .where(FulfillmentLink.owner_id == owner_id)
            .order_by(FulfillmentLink.created_at.desc())
        )
        with store_errors():
            result = await db.execute(stmt)
            return list(result.scalars().all())

    @staticmethod
    async def get_link(db: AsyncSession, owner_id: UUID | None, link_id: UUID) -> FulfillmentLink:
        owner_id = require_owner(owner_id)
        stmt = FulfillmentService._with_orders(
            select(FulfillmentLink).where(FulfillmentLink.id == link_id, FulfillmentLink.owner_id == owner_id)
        ).execution_options(populate_existing=True)
        with store_errors():
            result = await db.execute(stmt)
            link = result.scalar_one_or_none()
        if not link:
            raise NotFoundError("Fulfillment link not found")
        return link

    @staticmethod
    async def create_link(
        db: AsyncSession,
        owner_id: UUID | None,
        order_received_id: Any,
        order_placed_id: Any,
        quantity_fulfilled: Any,
    ) -> FulfillmentLink:
        """Allocate `quantity_fulfilled` of a placed order to a received order."""
        owner_id = require_owner(owner_id)
        validated = validate_fulfillment_link(
            {
                "order_received_id": order_received_id,
                "order_placed_id": order_placed_id,
                "quantity_fulfilled": quantity_fulfilled,
            }
        )

        # Both lookups happen before any write so a miss leaves no trace
        received = await FulfillmentService._lock_received(db, owner_id, validated.order_received_id)
        placed = await FulfillmentService._lock_placed(db, owner_id, validated.order_placed_id)

        with store_errors():
            link = FulfillmentLink(
                owner_id=owner_id,
                order_received_id=received.id,
                order_placed_id=placed.id,
                quantity_fulfilled=validated.quantity_fulfilled,
            )
            db.add(link)
            await db.flush()

        await FulfillmentService.recompute_placed(db, placed)
        await FulfillmentService.recompute_received(db, received)
        logger.info(
            "Linked placed #%s -> received #%s qty=%s (dispatched=%s, remaining=%s)",
            placed.order_number,
            received.order_number,
            link.quantity_fulfilled,
            received.dispatched_quantity,
            placed.remaining_quantity,
        )
        return await FulfillmentService.get_link(db, owner_id, link.id)

    @staticmethod
    async def delete_link(db: AsyncSession, owner_id: UUID | None, link_id: UUID) -> None:
        """Remove an allocation and recompute both sides from the remaining links."""
        link = await FulfillmentService.get_link(db, owner_id, link_id)
        received = await FulfillmentService._lock_received(db, link.owner_id, link.order_received_id)
        placed = await FulfillmentService._lock_placed(db, link.owner_id, link.order_placed_id)

        with store_errors():
            await db.delete(link)
            await db.flush()

        await FulfillmentService.recompute_placed(db, placed)
        await FulfillmentService.recompute_received(db, received)
        logger.info(
            "Removed link %s (dispatched=%s, remaining=%s)",
            link_id,
            received.dispatched_quantity,
            placed.remaining_quantity,
        )

    @staticmethod
    async def recompute_received(db: AsyncSession, order: ReceivedOrder) -> ReceivedOrder:
        """Recompute dispatched_quantity and status from the current link set. Idempotent."""
        dispatched = await FulfillmentService._linked_total(db, FulfillmentLink.order_received_id, order.id)
        order.dispatched_quantity = dispatched
        order.status = (
            OrderStatus.FULFILLED.value if dispatched == order.ordered_quantity else OrderStatus.CONFIRMED.value
        )
        if dispatched > order.ordered_quantity:
            logger.warning(
                "Received order #%s over-fulfilled: dispatched %s of %s",
                order.order_number, dispatched, order.ordered_quantity,
            )
        with store_errors():
            await db.flush()
        return order

    @staticmethod
    async def recompute_placed(db: AsyncSession, order: PlacedOrder) -> PlacedOrder:
        """Recompute remaining_quantity and status from the current link set. Idempotent."""
        allocated = await FulfillmentService._linked_total(db, FulfillmentLink.order_placed_id, order.id)
        remaining = order.ordered_quantity - allocated
        order.remaining_quantity = remaining
        order.status = OrderStatus.FULFILLED.value if remaining == 0 else OrderStatus.CONFIRMED.value
        if remaining < 0:
            logger.warning(
                "Placed order #%s over-allocated: %s allocated against %s ordered",
                order.order_number, allocated, order.ordered_quantity,
            )
        with store_errors():
            await db.flush()
        return order

    @staticmethod
    async def _linked_total(db: AsyncSession, column, order_id: UUID) -> Decimal:
        with store_errors():
            result = await db.execute(
                select(func.coalesce(func.sum(FulfillmentLink.quantity_fulfilled), 0)).where(column == order_id)
            )
            total = result.scalar_one()
        return Decimal(str(total))

    @staticmethod
    async def _lock_received(db: AsyncSession, owner_id: UUID, order_id: UUID) -> ReceivedOrder:
        with store_errors():
            result = await db.execute(
                select(ReceivedOrder)
                .where(ReceivedOrder.id == order_id, ReceivedOrder.owner_id == owner_id)
                .with_for_update()
            )
            order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order received not found")
        return order

    @staticmethod
    async def _lock_placed(db: AsyncSession, owner_id: UUID, order_id: UUID) -> PlacedOrder:
        with store_errors():
            result = await db.execute(
                select(PlacedOrder)
                .where(PlacedOrder.id == order_id, PlacedOrder.owner_id == owner_id)
                .with_for_update()
            )
            order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order placed not found")
        return order
