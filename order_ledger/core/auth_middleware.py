"""Order Ledger: JWT auth middleware, extracts the bearer token and sets request.state.user."""
import logging
from typing import Callable
from uuid import UUID

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from order_ledger.api.deps import CurrentUser
from order_ledger.core.security import decode_token

logger = logging.getLogger(__name__)


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """Resolve the owner from `Authorization: Bearer <jwt>`; leave it unset when absent or invalid."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.user = None

        auth = request.headers.get("Authorization", "")
        if auth.startswith("Bearer "):
            token = auth[7:].strip()
            payload = decode_token(token)
            if payload is None:
                logger.info("Rejected bearer token on %s", request.url.path)
            elif payload.get("type", "access") == "access" and payload.get("sub"):
                try:
                    owner_id = UUID(payload["sub"])
                except ValueError:
                    logger.warning("Token subject is not a UUID: %r", payload["sub"])
                else:
                    request.state.user = CurrentUser(id=owner_id, email=payload.get("email"))

        return await call_next(request)
