"""
Seller ledger - Append-only record of every movement on a store's balance.

Public API:
    Models:
        SellerBalance - Cached available / pending balance per store
        SellerBalanceTransaction - Immutable signed entry
        SellerPayoutSettings - Payout preferences and hold period
        SellerPayout - Payout to the store's Stripe account
        TransactionType / TransactionStatus - Entry enums

    Service:
        ledger - Singleton instance of SellerLedgerService
        SellerLedgerService - Class with all ledger operations

    Types:
        Money - Decimal amount with currency, minor unit conversion
        RecordTransactionParams - Parameters for recording entries
        BalanceSummary - Balance as shown to the seller

    Exceptions:
        LedgerError - Base exception for ledger operations
        ImmutableTransactionError - Attempt to edit or delete an entry
        InsufficientBalance - Payout larger than the available funds
        PayoutValidationError - Payout request rejected

Usage:
    from settlement.ledger import ledger, RecordTransactionParams, TransactionType

    ledger.record_transaction(RecordTransactionParams(
        store_id=store.id,
        type=TransactionType.STRIPE_FEE,
        amount=Decimal("3.20"),
        idempotency_key=f"stripe_fee:{payment.id}",
    ))
"""

from .exceptions import (
    ImmutableTransactionError,
    InsufficientBalance,
    LedgerError,
    PayoutValidationError,
)
from .models import (
    PayoutSchedule,
    SellerBalance,
    SellerBalanceTransaction,
    SellerPayout,
    SellerPayoutSettings,
    TransactionStatus,
    TransactionType,
)
from .services import SellerLedgerService, ledger
from .types import BalanceSummary, Money, RecordTransactionParams

__all__ = [
    # Models
    "PayoutSchedule",
    "SellerBalance",
    "SellerBalanceTransaction",
    "SellerPayout",
    "SellerPayoutSettings",
    "TransactionStatus",
    "TransactionType",
    # Service
    "ledger",
    "SellerLedgerService",
    # Types
    "BalanceSummary",
    "Money",
    "RecordTransactionParams",
    # Exceptions
    "ImmutableTransactionError",
    "InsufficientBalance",
    "LedgerError",
    "PayoutValidationError",
]
