"""
Order-specific exceptions.

Exception Hierarchy:
    OrderError (base)
    ├── OrderNotFoundError - Order lookup failures
    ├── DraftOrderNotFoundError - Draft lookup failures
    ├── DraftOrderValidationError - Draft cannot be converted as-is
    └── InventoryReservationError - Stock could not be reserved
    ImmutableRecordError - Write against a converted draft or order event
"""

from __future__ import annotations

from core.exceptions import BaseApplicationError, ConflictError, NotFoundError, ValidationError


class OrderError(BaseApplicationError):
    default_error_code: str = "ORDER_ERROR"


class OrderNotFoundError(NotFoundError):
    default_error_code: str = "ORDER_NOT_FOUND"


class DraftOrderNotFoundError(NotFoundError):
    default_error_code: str = "DRAFT_NOT_FOUND"


class DraftOrderValidationError(OrderError, ValidationError):
    """Raised when a draft is missing data needed to become an order."""

    default_error_code: str = "DRAFT_INVALID"


class InventoryReservationError(OrderError):
    """
    Raised when the inventory collaborator refuses a reservation.

    Raised inside the conversion transaction so the new order, its items
    and its events are rolled back together.
    """

    default_error_code: str = "INVENTORY_RESERVATION_FAILED"


class ImmutableRecordError(ConflictError):
    default_error_code: str = "IMMUTABLE_RECORD"
