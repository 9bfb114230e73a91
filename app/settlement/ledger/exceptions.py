"""
Seller ledger exceptions.

Exception Hierarchy:
    LedgerError (base)
    ├── ImmutableTransactionError - Attempt to modify or delete a ledger entry
    ├── InsufficientBalance - Payout larger than what can be paid out
    └── PayoutValidationError - Payout request rejected before reaching Stripe
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError, ValidationError

if TYPE_CHECKING:
    import uuid
    from typing import Any


class LedgerError(BaseApplicationError):
    default_error_code: str = "LEDGER_ERROR"


class ImmutableTransactionError(LedgerError, ConflictError):
    """
    Ledger entries are append-only.

    Corrections are made with a new adjustment entry, never by editing or
    deleting an existing one.
    """

    default_error_code: str = "IMMUTABLE_TRANSACTION"


class InsufficientBalance(LedgerError):
    """
    Raised when a store cannot cover a payout.

    Attributes:
        store_id: The store whose balance is too low
        required: The amount requested
        available: The amount available for payout
    """

    default_error_code: str = "INSUFFICIENT_BALANCE"

    def __init__(
        self,
        store_id: uuid.UUID,
        required: Decimal,
        available: Decimal,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.store_id = store_id
        self.required = required
        self.available = available

        message = (
            f"Store {store_id} has insufficient balance: "
            f"required {required}, available {available}"
        )
        full_details = {
            "store_id": str(store_id),
            "required": str(required),
            "available": str(available),
        }
        if details:
            full_details.update(details)

        super().__init__(message=message, error_code=error_code, details=full_details)


class PayoutValidationError(LedgerError, ValidationError):
    default_error_code: str = "PAYOUT_INVALID"
