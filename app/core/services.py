"""
Base service layer patterns for business logic encapsulation.

This module provides the two building blocks every domain service uses:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with logging and transaction helpers

Pattern Comparison:
    - ServiceResult: Use for expected failures (missing draft, bad metadata)
    - Exceptions: Use for unexpected failures (database errors, processor outages)

Usage:
    from core.services import BaseService, ServiceResult

    class DraftOrderService(BaseService):
        @classmethod
        def complete_draft_order(cls, draft_id) -> ServiceResult[DraftConversion]:
            with cls.atomic():
                draft = DraftOrder.objects.select_for_update().filter(id=draft_id).first()
                if draft is None:
                    return ServiceResult.failure("Draft not found", "DRAFT_NOT_FOUND")
                ...
            return ServiceResult.success(conversion)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures
        details: Context carried over from an application error (ids, amounts)

    Usage:
        result = SellerPayoutService.request_payout(store_id, amount, user)
        if result:
            payout = result.data
        else:
            logger.warning(f"Payout rejected: {result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result carrying ``data``."""
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Application errors keep their own error code and details; anything
        else falls back to the exception class name.
        """
        message = getattr(exc, "message", None) or str(exc)
        return cls(
            success=False,
            error=message,
            details=dict(getattr(exc, "details", None) or {}),
            error_code=error_code
            or getattr(exc, "error_code", None)
            or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """Convert to a dictionary suitable for returning from a DRF view."""
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        if self.details:
            response["details"] = self.details
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Services are stateless: use @staticmethod or @classmethod, return
    ServiceResult for expected failures and raise for unexpected ones.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Return a logger named after the concrete service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        A thin wrapper around ``transaction.atomic()`` that makes the
        transaction boundary explicit in service code. Nested use creates a
        savepoint, so a failure inside the block rolls back only the block.
        """
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
    ) -> ServiceResult:
        """
        Log an exception and convert it to a failed ServiceResult.

        Example:
            try:
                StripeAdapter.create_payout(...)
            except StripeError as e:
                return cls.handle_exception(e, "seller payout")
        """
        message = f"{context}: {exc}" if context else str(exc)
        cls.get_logger().log(log_level, message, exc_info=True)
        return ServiceResult.from_exception(exc)

    @classmethod
    def validate_required(cls, **kwargs) -> ServiceResult | None:
        """
        Validate that required fields are provided.

        Returns a failure result if any value is None or a blank string,
        otherwise None.
        """
        errors = {}
        for field_name, value in kwargs.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                errors[field_name] = ["This field is required."]

        if errors:
            return ServiceResult.failure(
                "Required fields missing",
                error_code="VALIDATION_ERROR",
                errors=errors,
            )
        return None
