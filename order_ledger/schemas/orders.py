"""Order Ledger: ReceivedOrder / PlacedOrder schemas."""
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

DEFAULT_UNIT = "mtrs"

# Matches the Numeric(18, 4) columns so nothing is rounded on write
QUANTITY_DIGITS = {"max_digits": 18, "decimal_places": 4}


def blank_as_zero(value):
    """Blank numeric input counts as 0 and is then rejected or accepted by the bounds."""
    if isinstance(value, str) and not value.strip():
        return 0
    return value


class _OrderInputBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    item_name: str = Field(..., min_length=1, max_length=255)
    sku: str | None = Field(default=None, max_length=100)
    ordered_quantity: Decimal = Field(..., gt=0, **QUANTITY_DIGITS)
    unit: str = Field(default=DEFAULT_UNIT, max_length=50)
    rate: Decimal | None = Field(default=None, gt=0, **QUANTITY_DIGITS)
    notes: str | None = None
    custom_fields: dict[str, str] | None = None

    @field_validator("unit", mode="before")
    @classmethod
    def _default_unit(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_UNIT
        return value

    @field_validator("ordered_quantity", mode="before")
    @classmethod
    def _blank_quantity(cls, value):
        return blank_as_zero(value)

    @field_validator("rate", mode="before")
    @classmethod
    def _rate_given_or_omitted(cls, value):
        # rate may be left out, but an explicit null is not a number
        if value is None:
            raise PydanticCustomError("decimal_type", "Must be a number")
        return blank_as_zero(value)


class ReceivedOrderCreate(_OrderInputBase):
    customer_name: str = Field(..., min_length=1, max_length=255)


class PlacedOrderCreate(_OrderInputBase):
    party_name: str = Field(..., min_length=1, max_length=255)
    received_quantity: Decimal | None = Field(default=None, ge=0, **QUANTITY_DIGITS)

    @field_validator("received_quantity", mode="before")
    @classmethod
    def _blank_received(cls, value):
        return blank_as_zero(value)


# --- Partial updates: only directly-mutable fields are accepted ---

class _OrderUpdateBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    item_name: str | None = Field(default=None, min_length=1, max_length=255)
    sku: str | None = Field(default=None, max_length=100)
    unit: str | None = Field(default=None, min_length=1, max_length=50)
    rate: Decimal | None = Field(default=None, gt=0, **QUANTITY_DIGITS)
    notes: str | None = None
    custom_fields: dict[str, str] | None = None

    @field_validator("rate", mode="before")
    @classmethod
    def _blank_rate(cls, value):
        return blank_as_zero(value)


class ReceivedOrderUpdate(_OrderUpdateBase):
    customer_name: str | None = Field(default=None, min_length=1, max_length=255)


class PlacedOrderUpdate(_OrderUpdateBase):
    party_name: str | None = Field(default=None, min_length=1, max_length=255)
    received_quantity: Decimal | None = Field(default=None, ge=0, **QUANTITY_DIGITS)

    @field_validator("received_quantity", mode="before")
    @classmethod
    def _blank_received(cls, value):
        return blank_as_zero(value)


# --- Responses ---

class ReceivedOrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: int
    customer_name: str
    item_name: str
    sku: str | None
    ordered_quantity: Decimal
    unit: str
    rate: Decimal | None
    notes: str | None
    custom_fields: dict[str, str] | None
    dispatched_quantity: Decimal
    status: str
    created_at: datetime | None


class PlacedOrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: int
    party_name: str
    item_name: str
    sku: str | None
    ordered_quantity: Decimal
    received_quantity: Decimal | None
    unit: str
    rate: Decimal | None
    notes: str | None
    custom_fields: dict[str, str] | None
    remaining_quantity: Decimal
    over_allocated: bool
    status: str
    created_at: datetime | None
