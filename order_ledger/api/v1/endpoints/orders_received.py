"""Order Ledger: Orders Received endpoints (customer demand)."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, status
from pydantic import TypeAdapter

from order_ledger.api.deps import AuthUser, Cache, DbSession
from order_ledger.core.cache import View
from order_ledger.db.errors import store_errors
from order_ledger.schemas.common import ApiResponse, Meta
from order_ledger.schemas.orders import ReceivedOrderResponse
from order_ledger.services.order_service import OrderService

router = APIRouter()

_list_adapter = TypeAdapter(list[ReceivedOrderResponse])


@router.get("", response_model=ApiResponse[list[ReceivedOrderResponse]])
async def list_orders_received(user: AuthUser, db: DbSession, cache: Cache):
    """List received orders for the current owner, newest order number first."""
    cached = await cache.get(user.id, View.RECEIVED)
    if cached is not None:
        data = _list_adapter.validate_json(cached)
        return ApiResponse(data=data, meta=Meta(total_count=len(data), cached=True))

    generation = await cache.generation(user.id)
    orders = await OrderService.list_received(db, user.id)
    data = [ReceivedOrderResponse.model_validate(order) for order in orders]
    await cache.set(user.id, View.RECEIVED, _list_adapter.dump_json(data).decode(), generation)
    return ApiResponse(data=data, meta=Meta(total_count=len(data)))


@router.post("", response_model=ApiResponse[ReceivedOrderResponse], status_code=status.HTTP_201_CREATED)
async def create_order_received(user: AuthUser, db: DbSession, cache: Cache, body: dict[str, Any] = Body(...)):
    """Record a customer order. Starts `confirmed` with nothing dispatched."""
    order = await OrderService.create_received(db, user.id, body)
    with store_errors():
        await db.commit()
    await cache.invalidate(user.id, OrderService.RECEIVED_VIEWS)
    return ApiResponse(data=ReceivedOrderResponse.model_validate(order))


@router.get("/{order_id}", response_model=ApiResponse[ReceivedOrderResponse])
async def get_order_received(order_id: UUID, user: AuthUser, db: DbSession):
    order = await OrderService.get_received(db, user.id, order_id)
    return ApiResponse(data=ReceivedOrderResponse.model_validate(order))


@router.patch("/{order_id}", response_model=ApiResponse[ReceivedOrderResponse])
async def update_order_received(
    order_id: UUID, user: AuthUser, db: DbSession, cache: Cache, body: dict[str, Any] = Body(...)
):
    """Partially update descriptive fields. Quantities derived from links cannot be set here."""
    order = await OrderService.update_received(db, user.id, order_id, body)
    with store_errors():
        await db.commit()
    await cache.invalidate(user.id, OrderService.RECEIVED_UPDATE_VIEWS)
    return ApiResponse(data=ReceivedOrderResponse.model_validate(order))


@router.delete("/{order_id}", response_model=ApiResponse[dict])
async def delete_order_received(order_id: UUID, user: AuthUser, db: DbSession, cache: Cache):
    """Delete a received order. Refused with 409 while fulfillment links reference it."""
    await OrderService.delete_received(db, user.id, order_id)
    with store_errors():
        await db.commit()
    await cache.invalidate(user.id, OrderService.RECEIVED_VIEWS)
    return ApiResponse(data={"id": str(order_id), "deleted": True})
