"""Typed failures raised by the ledger services.

The HTTP layer maps each class to a status code through the exception
handlers registered in ``cardledger.main``; services never build HTTP
responses themselves.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every domain failure."""

    status_code: int = 500
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFoundError(LedgerError):
    """Entity absent or not owned by the acting user."""

    status_code = 404
    default_detail = "Not found"


class ForbiddenError(LedgerError):
    """Entity exists but belongs to another user (transaction deletion only)."""

    status_code = 403
    default_detail = "Forbidden"


class ValidationFailedError(LedgerError):
    """Malformed or out-of-range input detected before any write."""

    status_code = 400
    default_detail = "Invalid request"


class ConflictError(LedgerError):
    """Uniqueness violation such as a second budget for the same period."""

    status_code = 409
    default_detail = "Conflict"
