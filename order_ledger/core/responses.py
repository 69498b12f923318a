"""Order Ledger: API response helpers and exception handlers."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from order_ledger.core.exceptions import LedgerError, ValidationError

logger = logging.getLogger(__name__)


def error_response(code: str, message: str, field_errors: list[dict] | None = None, meta: dict | None = None) -> dict:
    return {
        "data": None,
        "error": {
            "code": code,
            "message": message,
            "field_errors": field_errors or []
        },
        "meta": meta
    }


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    field_errors = None
    if isinstance(exc, ValidationError):
        field_errors = [{"field": field, "message": msg} for field, msg in exc.field_errors.items()]
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message, field_errors),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed path/query/body reaching FastAPI's own parser, e.g. a non-UUID path id."""
    field_errors = [
        {"field": ".".join(str(p) for p in err["loc"] if p not in ("body", "path", "query")), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=error_response("validation_error", "Validation failed", field_errors),
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
