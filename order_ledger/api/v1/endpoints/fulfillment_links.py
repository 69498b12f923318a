"""Order Ledger: Fulfillment Link endpoints (allocate supply to demand)."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, status
from pydantic import TypeAdapter

from order_ledger.api.deps import AuthUser, Cache, DbSession
from order_ledger.core.cache import View
from order_ledger.db.errors import store_errors
from order_ledger.schemas.common import ApiResponse, Meta
from order_ledger.schemas.fulfillment import FulfillmentLinkResponse
from order_ledger.services.fulfillment_service import FulfillmentService
from order_ledger.services.validation import validate_fulfillment_link

router = APIRouter()

_list_adapter = TypeAdapter(list[FulfillmentLinkResponse])


@router.get("", response_model=ApiResponse[list[FulfillmentLinkResponse]])
async def list_fulfillment_links(user: AuthUser, db: DbSession, cache: Cache):
    """List links with their received and placed orders embedded, newest first."""
    cached = await cache.get(user.id, View.LINKS)
    if cached is not None:
        data = _list_adapter.validate_json(cached)
        return ApiResponse(data=data, meta=Meta(total_count=len(data), cached=True))

    generation = await cache.generation(user.id)
    links = await FulfillmentService.list_links(db, user.id)
    data = [FulfillmentLinkResponse.model_validate(link) for link in links]
    await cache.set(user.id, View.LINKS, _list_adapter.dump_json(data).decode(), generation)
    return ApiResponse(data=data, meta=Meta(total_count=len(data)))


@router.post("", response_model=ApiResponse[FulfillmentLinkResponse], status_code=status.HTTP_201_CREATED)
async def create_fulfillment_link(user: AuthUser, db: DbSession, cache: Cache, body: dict[str, Any] = Body(...)):
    """
    Allocate a placed order's quantity to a received order.
    Recomputes dispatched/remaining quantities and statuses on both orders.
    Over-allocation is accepted and reported through the returned orders.
    """
    payload = validate_fulfillment_link(body)
    link = await FulfillmentService.create_link(
        db,
        user.id,
        payload.order_received_id,
        payload.order_placed_id,
        payload.quantity_fulfilled,
    )
    with store_errors():
        await db.commit()
    await cache.invalidate(user.id, FulfillmentService.AFFECTED_VIEWS)
    return ApiResponse(data=FulfillmentLinkResponse.model_validate(link))


@router.get("/{link_id}", response_model=ApiResponse[FulfillmentLinkResponse])
async def get_fulfillment_link(link_id: UUID, user: AuthUser, db: DbSession):
    link = await FulfillmentService.get_link(db, user.id, link_id)
    return ApiResponse(data=FulfillmentLinkResponse.model_validate(link))


@router.delete("/{link_id}", response_model=ApiResponse[dict])
async def delete_fulfillment_link(link_id: UUID, user: AuthUser, db: DbSession, cache: Cache):
    """Remove an allocation; both orders are recomputed from the remaining links."""
    await FulfillmentService.delete_link(db, user.id, link_id)
    with store_errors():
        await db.commit()
    await cache.invalidate(user.id, FulfillmentService.AFFECTED_VIEWS)
    return ApiResponse(data={"id": str(link_id), "deleted": True})
