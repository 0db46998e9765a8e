"""
Domain: Error taxonomy for sale processing.

Every business-rule failure raised by the domain and services is a SaleError
with a `kind` the API layer maps to a status code. Out-of-scope lookups are
reported as NotFoundError, never ForbiddenError, so callers cannot discover
other customers' sales.
"""

from __future__ import annotations


class SaleError(Exception):
    """Base class for failures that cross the service boundary."""

    kind: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(SaleError):
    """Missing or out-of-scope customer, seller, product, or sale."""

    kind = "not_found"


class SaleValidationError(SaleError):
    """Malformed line data, negative computed total, non-positive payment."""

    kind = "validation_error"


class ConflictError(SaleError):
    """The request conflicts with the current state of the sale."""

    kind = "conflict"
    retryable: bool = False


class SaleNumberConflict(ConflictError):
    """Another sale already holds the allocated sale number."""

    retryable = True


class ConcurrentModificationError(ConflictError):
    """The sale changed between read and write (version mismatch)."""


class ForbiddenError(SaleError):
    """The actor's role does not allow the requested change."""

    kind = "forbidden"


__all__ = [
    "SaleError",
    "NotFoundError",
    "SaleValidationError",
    "ConflictError",
    "SaleNumberConflict",
    "ConcurrentModificationError",
    "ForbiddenError",
]
