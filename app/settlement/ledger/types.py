"""
Data types for seller ledger operations.

Types:
    Money: A Decimal amount in major units with its currency
    RecordTransactionParams: Parameters for recording a ledger transaction
    BalanceSummary: A store's balance as shown to the seller

Usage:
    from settlement.ledger.types import Money, RecordTransactionParams

    Money.from_minor(10000, "usd")      # Money(amount=Decimal('100.00'), currency='usd')
    Money(Decimal("12.50")).to_minor()  # 1250

    params = RecordTransactionParams(
        store_id=store.id,
        type=TransactionType.PLATFORM_FEE,
        amount=Decimal("5.00"),
        idempotency_key=f"platform_fee:{payment.id}",
    )
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from settlement.fees import quantize

# Currencies whose Stripe amounts are already in major units.
ZERO_DECIMAL_CURRENCIES = frozenset(
    {"bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga", "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf"}
)


@dataclass(frozen=True)
class Money:
    """
    A monetary amount in major units.

    Stripe reports amounts in the smallest currency unit; from_minor() and
    to_minor() convert at that boundary so the rest of the code only sees
    Decimals.
    """

    amount: Decimal
    currency: str = "usd"

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", quantize(self.amount))
        object.__setattr__(self, "currency", self.currency.lower())

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency.upper()}"

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot add Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot subtract Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )
        return Money(self.amount - other.amount, self.currency)

    @classmethod
    def from_minor(cls, minor: int, currency: str = "usd") -> Money:
        if currency.lower() in ZERO_DECIMAL_CURRENCIES:
            return cls(Decimal(minor), currency)
        return cls(Decimal(minor) / 100, currency)

    def to_minor(self) -> int:
        if self.currency in ZERO_DECIMAL_CURRENCIES:
            return int(self.amount)
        return int(self.amount * 100)


@dataclass
class RecordTransactionParams:
    """
    Parameters for SellerLedgerService.record_transaction().

    ``amount`` is a positive magnitude; the transaction type decides the
    sign. The one exception is ``adjustment``, where a negative amount
    means a debit.

    ``available_at`` overrides when the entry counts towards the available
    balance. Leave it None to use the defaults (hold period for
    order_payment, immediately for everything else).
    """

    store_id: uuid.UUID
    type: str
    amount: Decimal
    idempotency_key: str

    currency: str = "usd"
    order_id: uuid.UUID | None = None
    order_payment_id: uuid.UUID | None = None
    payout_id: uuid.UUID | None = None
    description: str = ""
    available_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Imported here to keep types importable before the app registry is ready.
        from settlement.ledger.models import TransactionType

        self.amount = quantize(self.amount)
        if self.type not in TransactionType.values:
            raise ValueError(f"Unknown transaction type: {self.type}")
        if self.type == TransactionType.ADJUSTMENT:
            if self.amount == 0:
                raise ValueError("adjustment amount must be non-zero")
        elif self.amount <= 0:
            raise ValueError("amount must be positive")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")


@dataclass(frozen=True)
class BalanceSummary:
    """
    A store's balance, reconciled against its Stripe connected account.

    available_for_payout is the smaller of the ledger's available balance
    and the Stripe available balance (both floored at zero). A store with
    no connected account, or whose Stripe balance cannot be read, has
    nothing available for payout.

    When fees have pushed the ledger's available balance negative, the
    shortfall is either covered by pending funds (reserved_fees_from_pending)
    or owed by the seller (amount_due).
    """

    store_id: uuid.UUID
    currency: str
    available_balance: Decimal
    pending_balance: Decimal
    current_balance: Decimal
    available_for_payout: Decimal
    amount_due: Decimal
    reserved_fees_from_pending: Decimal
    stripe_available: Decimal | None = None
    stripe_pending: Decimal | None = None
    last_payout_at: datetime | None = None
    last_payout_amount: Decimal | None = None
