"""Order Ledger: SQLAlchemy models."""
from order_ledger.models.fulfillment_link import FulfillmentLink
from order_ledger.models.placed_order import PlacedOrder
from order_ledger.models.received_order import OrderStatus, ReceivedOrder

__all__ = [
    "ReceivedOrder", "PlacedOrder", "OrderStatus",
    "FulfillmentLink",
]
