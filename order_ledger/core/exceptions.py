"""Order Ledger: domain exceptions raised by services and rendered by the API layer."""


class LedgerError(Exception):
    """Base class for all ledger errors."""

    code = "ledger_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Input rejected. `field_errors` maps every failing field to its message."""

    code = "validation_error"
    status_code = 422

    def __init__(self, field_errors: dict[str, str], message: str = "Validation failed"):
        super().__init__(message)
        self.field_errors = field_errors

    def __str__(self) -> str:
        details = "; ".join(f"{field}: {msg}" for field, msg in self.field_errors.items())
        return f"{self.message} ({details})" if details else self.message


class NotFoundError(LedgerError):
    code = "not_found"
    status_code = 404


class AuthenticationError(LedgerError):
    code = "not_authenticated"
    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class ConflictError(LedgerError):
    code = "conflict"
    status_code = 409


class PersistenceError(LedgerError):
    """The store was unreachable or rejected the write. Never retried."""

    code = "persistence_error"
    status_code = 503
