"""Order Ledger: Orders Placed endpoints (supplier supply)."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, status
from pydantic import TypeAdapter

from order_ledger.api.deps import AuthUser, Cache, DbSession
from order_ledger.core.cache import View
from order_ledger.db.errors import store_errors
from order_ledger.schemas.common import ApiResponse, Meta
from order_ledger.schemas.orders import PlacedOrderResponse
from order_ledger.services.order_service import OrderService

router = APIRouter()

_list_adapter = TypeAdapter(list[PlacedOrderResponse])


@router.get("", response_model=ApiResponse[list[PlacedOrderResponse]])
async def list_orders_placed(user: AuthUser, db: DbSession, cache: Cache):
    """List placed orders for the current owner, newest order number first."""
    cached = await cache.get(user.id, View.PLACED)
    if cached is not None:
        data = _list_adapter.validate_json(cached)
        return ApiResponse(data=data, meta=Meta(total_count=len(data), cached=True))

    generation = await cache.generation(user.id)
    orders = await OrderService.list_placed(db, user.id)
    data = [PlacedOrderResponse.model_validate(order) for order in orders]
    await cache.set(user.id, View.PLACED, _list_adapter.dump_json(data).decode(), generation)
    return ApiResponse(data=data, meta=Meta(total_count=len(data)))


@router.post("", response_model=ApiResponse[PlacedOrderResponse], status_code=status.HTTP_201_CREATED)
async def create_order_placed(user: AuthUser, db: DbSession, cache: Cache, body: dict[str, Any] = Body(...)):
    """Record a supplier order. Its whole quantity starts unallocated."""
    order = await OrderService.create_placed(db, user.id, body)
    with store_errors():
        await db.commit()
    await cache.invalidate(user.id, OrderService.PLACED_VIEWS)
    return ApiResponse(data=PlacedOrderResponse.model_validate(order))


@router.get("/{order_id}", response_model=ApiResponse[PlacedOrderResponse])
async def get_order_placed(order_id: UUID, user: AuthUser, db: DbSession):
    order = await OrderService.get_placed(db, user.id, order_id)
    return ApiResponse(data=PlacedOrderResponse.model_validate(order))


@router.patch("/{order_id}", response_model=ApiResponse[PlacedOrderResponse])
async def update_order_placed(
    order_id: UUID, user: AuthUser, db: DbSession, cache: Cache, body: dict[str, Any] = Body(...)
):
    """Partially update the order, typically the supplier-reported received_quantity."""
    order = await OrderService.update_placed(db, user.id, order_id, body)
    with store_errors():
        await db.commit()
    await cache.invalidate(user.id, OrderService.PLACED_UPDATE_VIEWS)
    return ApiResponse(data=PlacedOrderResponse.model_validate(order))


@router.delete("/{order_id}", response_model=ApiResponse[dict])
async def delete_order_placed(order_id: UUID, user: AuthUser, db: DbSession, cache: Cache):
    """Delete a placed order. Refused with 409 while fulfillment links reference it."""
    await OrderService.delete_placed(db, user.id, order_id)
    with store_errors():
        await db.commit()
    await cache.invalidate(user.id, OrderService.PLACED_VIEWS)
    return ApiResponse(data={"id": str(order_id), "deleted": True})
