"""
Base exception classes for application-wide error handling.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input or business rule validation failures
    ├── NotFoundError - Resource not found
    ├── ConflictError - State conflicts (illegal transitions, immutability)
    └── ExternalServiceError - Third-party service failures

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError(
        f"Order {order_id} not found",
        error_code="ORDER_NOT_FOUND",
        details={"order_id": str(order_id)},
    )

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=400)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (ids, amounts, states)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Draft order not found",
                "error_code": "DRAFT_NOT_FOUND",
                "details": {"draft_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for service-layer rules such as a payout below the store minimum or
    a malformed amount. DRF serializer validation stays in serializers.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """Raised when a single resource that is expected to exist is missing."""

    default_error_code: str = "NOT_FOUND"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Illegal state transitions
    - Writes against immutable records (ledger entries, converted drafts)
    - Optimistic locking failures

    HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Log the original error for debugging but don't expose internal
    details to clients. HTTP 502/503 are appropriate.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
