# Overview: Error taxonomy shared by services, stores and routes.

"""
Service errors.

Every failure a caller can act on is a ServiceError subclass. Each carries a
stable ``kind`` (reported to clients) and the HTTP status the API answers
with. Anything else escaping a route is an internal error.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors reported verbatim to the caller."""

    kind = "service_error"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message, "kind": self.kind}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ServiceError, ValueError):
    """400-level input problem. Raised before any write is attempted."""

    kind = "validation_error"
    status_code = 400


class UnauthorizedError(ServiceError):
    """Caller is not authenticated."""

    kind = "unauthorized"
    status_code = 401


class NotFoundError(ServiceError):
    """Record is missing or belongs to another owner (indistinguishable)."""

    kind = "not_found"
    status_code = 404


class InsufficientStockError(ServiceError):
    """Requested quantity exceeds current stock. Not retriable."""

    kind = "insufficient_stock"
    status_code = 409


class TransactionFailedError(ServiceError):
    """The store could not commit an atomic write (after retries)."""

    kind = "transaction_failed"
    status_code = 503

    def __init__(self, message: str = "Transaction failed, please try again", details: dict | None = None):
        super().__init__(message, details)
