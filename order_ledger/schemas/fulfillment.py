"""Order Ledger: FulfillmentLink schemas."""
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from order_ledger.schemas.orders import (
    QUANTITY_DIGITS,
    PlacedOrderResponse,
    ReceivedOrderResponse,
    blank_as_zero,
)


class FulfillmentLinkCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    order_received_id: UUID
    order_placed_id: UUID
    quantity_fulfilled: Decimal = Field(..., gt=0, **QUANTITY_DIGITS)

    @field_validator("quantity_fulfilled", mode="before")
    @classmethod
    def _blank_quantity(cls, value):
        return blank_as_zero(value)


class FulfillmentLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_received_id: UUID
    order_placed_id: UUID
    quantity_fulfilled: Decimal
    created_at: datetime | None
    order_received: ReceivedOrderResponse | None = None
    order_placed: PlacedOrderResponse | None = None
