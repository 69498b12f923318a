"""Order Ledger: FastAPI dependencies (auth, DB, view cache)."""
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from order_ledger.core.cache import ViewCache, get_view_cache
from order_ledger.core.exceptions import AuthenticationError
from order_ledger.db.session import get_db

DbSession = Annotated[AsyncSession, Depends(get_db)]
Cache = Annotated[ViewCache, Depends(get_view_cache)]


class CurrentUser:
    """Owner identity from the identity provider's JWT, set on request.state by middleware."""

    def __init__(self, id: UUID, email: str | None = None):
        self.id = id
        self.email = email


async def get_current_user(request: Request) -> CurrentUser | None:
    """Extract user from request.state (populated by auth middleware)."""
    return getattr(request.state, "user", None)


async def require_auth(user: CurrentUser | None = Depends(get_current_user)) -> CurrentUser:
    """Require an authenticated owner."""
    if not user:
        raise AuthenticationError()
    return user


AuthUser = Annotated[CurrentUser, Depends(require_auth)]
