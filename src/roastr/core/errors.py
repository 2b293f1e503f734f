"""Domain error taxonomy.

Services raise these exceptions; the HTTP layer maps each class to a status
code through a single exception handler registered in ``roastr.main``.
"""

from __future__ import annotations


class RoastrError(Exception):
    """Base class for every failure the core reports to its callers."""

    status_code: int = 400
    code: str = "error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(RoastrError):
    """Submitted data is empty, oversized or references unknown entities."""

    status_code = 422
    code = "validation_error"


class PermissionDeniedError(RoastrError):
    """The caller is not allowed to perform the operation."""

    status_code = 403
    code = "permission_denied"


class AuthenticationRequiredError(PermissionDeniedError):
    """The operation needs a signed-in caller and none was supplied."""

    status_code = 401
    code = "authentication_required"


class NotFoundError(RoastrError):
    """The referenced entity does not exist."""

    status_code = 404
    code = "not_found"


class ConflictError(RoastrError):
    """The entity is not in a state that allows the operation."""

    status_code = 409
    code = "conflict"


class RateLimitError(RoastrError):
    """A quota has been exhausted for the current window."""

    status_code = 429
    code = "rate_limited"

    def __init__(self, detail: str, *, limit: int, remaining: int, retry_after: int) -> None:
        super().__init__(detail)
        self.limit = limit
        self.remaining = remaining
        self.retry_after = retry_after


class StorageError(RoastrError):
    """The persistent store failed; retry policy belongs to the caller."""

    status_code = 503
    code = "storage_unavailable"


__all__ = [
    "AuthenticationRequiredError",
    "ConflictError",
    "NotFoundError",
    "PermissionDeniedError",
    "RateLimitError",
    "RoastrError",
    "StorageError",
    "ValidationError",
]
