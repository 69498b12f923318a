"""Order Ledger: translate driver/ORM failures into PersistenceError."""
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from order_ledger.core.exceptions import PersistenceError


def persistence_message(exc: SQLAlchemyError) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


@contextmanager
def store_errors() -> Iterator[None]:
    """Re-raise any SQLAlchemy error as PersistenceError, message kept verbatim."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise PersistenceError(persistence_message(exc)) from exc
