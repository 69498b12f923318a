"""Order Ledger: API v1 router aggregation."""
from fastapi import APIRouter

from order_ledger.api.v1.endpoints import (
    fulfillment_links,
    orders_placed,
    orders_received,
)

api_router = APIRouter()

api_router.include_router(orders_received.router, prefix="/orders-received", tags=["orders-received"])
api_router.include_router(orders_placed.router, prefix="/orders-placed", tags=["orders-placed"])
api_router.include_router(fulfillment_links.router, prefix="/fulfillment-links", tags=["fulfillment-links"])
