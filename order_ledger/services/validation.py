"""Order Ledger: validation layer.

Pure checks run before anything reaches the store. Every failing field is
reported together in a single ValidationError.
"""
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from order_ledger.core.exceptions import ValidationError
from order_ledger.schemas.fulfillment import FulfillmentLinkCreate
from order_ledger.schemas.orders import (
    PlacedOrderCreate,
    PlacedOrderUpdate,
    ReceivedOrderCreate,
    ReceivedOrderUpdate,
)

M = TypeVar("M", bound=BaseModel)

_REQUIRED_MESSAGES = {
    "customer_name": "Customer name is required",
    "party_name": "Party name is required",
    "item_name": "Item name is required",
    "unit": "Unit is required",
}

_ID_MESSAGES = {
    "order_received_id": "Invalid order received ID",
    "order_placed_id": "Invalid order placed ID",
}

# Columns that exist on the row but cannot be cleared through a partial update
_NON_NULLABLE_UPDATE_FIELDS = ("customer_name", "party_name", "item_name", "unit")


def _message_for(field: str, error: dict) -> str:
    kind = error["type"]
    if field in _ID_MESSAGES:
        return _ID_MESSAGES[field]
    if kind in ("missing", "string_too_short") and field in _REQUIRED_MESSAGES:
        return _REQUIRED_MESSAGES[field]
    if kind == "greater_than":
        return "Must be greater than 0"
    if kind == "greater_than_equal":
        return "Cannot be negative"
    if kind in ("decimal_parsing", "decimal_type", "finite_number"):
        return "Must be a number"
    if kind == "decimal_max_places":
        return "At most 4 decimal places"
    if kind in ("decimal_max_digits", "decimal_whole_digits"):
        return "Too many digits"
    if kind == "missing":
        return "Required"
    if kind == "extra_forbidden":
        return "Field cannot be updated directly"
    return error["msg"]


def _field_errors(exc: PydanticValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = error["loc"]
        field = str(loc[0]) if loc else "body"
        # First failure per field wins
        errors.setdefault(field, _message_for(field, error))
    return errors


def _validate(model: type[M], data: Any) -> M:
    if isinstance(data, model):
        return data
    if not isinstance(data, dict):
        raise ValidationError({"body": "Expected an object"})
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_field_errors(exc)) from exc


def _validate_update(model: type[M], data: Any) -> M:
    validated = _validate(model, data)
    errors = {
        field: _REQUIRED_MESSAGES[field]
        for field in _NON_NULLABLE_UPDATE_FIELDS
        if field in validated.model_fields_set and getattr(validated, field, None) is None
    }
    if errors:
        raise ValidationError(errors)
    return validated


def validate_received_order(data: Any) -> ReceivedOrderCreate:
    return _validate(ReceivedOrderCreate, data)


def validate_placed_order(data: Any) -> PlacedOrderCreate:
    return _validate(PlacedOrderCreate, data)


def validate_fulfillment_link(data: Any) -> FulfillmentLinkCreate:
    return _validate(FulfillmentLinkCreate, data)


def validate_received_order_update(data: Any) -> ReceivedOrderUpdate:
    return _validate_update(ReceivedOrderUpdate, data)


def validate_placed_order_update(data: Any) -> PlacedOrderUpdate:
    return _validate_update(PlacedOrderUpdate, data)
