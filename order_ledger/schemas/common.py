"""Order Ledger: common response envelope."""
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Meta(BaseModel):
    """List metadata."""

    total_count: int | None = None
    cached: bool = False


class ErrorDetail(BaseModel):
    code: str
    message: str
    field_errors: list[dict] = []


class ApiResponse(BaseModel, Generic[T]):
    """Standard response envelope: {data, error, meta}."""

    data: T | None = None
    error: ErrorDetail | None = None
    meta: Meta | None = None
