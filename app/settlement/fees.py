"""
Fee and split calculation.

Pure Decimal arithmetic, no database access. All results are rounded to
cents with ROUND_HALF_UP.

Fees on a checkout total T:
    platform_fee  = T × PLATFORM_FEE_PERCENT / 100
    processor_fee = T × STRIPE_FEE_PERCENT / 100 + STRIPE_FEE_FIXED
    net_to_store  = T − platform_fee − processor_fee

    calculate_fees(Decimal("100.00"))  # 5.00 / 3.20 / 91.80 with defaults

When one checkout pays several stores (or several orders within a store),
the global fees are split in proportion to each share with allocate(),
which hands the rounding remainder to the largest share so the parts
always add back up to the whole.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import TypeVar

from django.conf import settings

K = TypeVar("K", bound=Hashable)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(amount) -> Decimal:
    """Round to cents, half up."""
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FeeRates:
    platform_percent: Decimal
    processor_percent: Decimal
    processor_fixed: Decimal

    @classmethod
    def from_settings(cls) -> FeeRates:
        return cls(
            platform_percent=Decimal(str(settings.PLATFORM_FEE_PERCENT)),
            processor_percent=Decimal(str(settings.STRIPE_FEE_PERCENT)),
            processor_fixed=Decimal(str(settings.STRIPE_FEE_FIXED)),
        )


@dataclass(frozen=True)
class FeeBreakdown:
    total: Decimal
    platform_fee: Decimal
    processor_fee: Decimal
    net_to_store: Decimal
    currency: str = "usd"

    def to_dict(self) -> dict[str, str]:
        return {
            "total": str(self.total),
            "platform_fee": str(self.platform_fee),
            "processor_fee": str(self.processor_fee),
            "net_to_store": str(self.net_to_store),
            "currency": self.currency,
        }


def calculate_fees(
    total: Decimal,
    currency: str = "usd",
    rates: FeeRates | None = None,
) -> FeeBreakdown:
    """Compute platform and processor fees for a checkout total."""
    rates = rates or FeeRates.from_settings()
    total = quantize(total)
    platform_fee = quantize(total * rates.platform_percent / 100)
    processor_fee = quantize(total * rates.processor_percent / 100 + rates.processor_fixed)
    return FeeBreakdown(
        total=total,
        platform_fee=platform_fee,
        processor_fee=processor_fee,
        net_to_store=total - platform_fee - processor_fee,
        currency=currency,
    )


def allocate(amount: Decimal, weights: Mapping[K, Decimal]) -> dict[K, Decimal]:
    """
    Split ``amount`` across ``weights`` proportionally, to the cent.

    Each part is rounded down; the leftover cents go to the key with the
    largest weight (the first one on ties, in mapping order). The parts
    always sum to ``quantize(amount)``.

    Raises:
        ValueError: If there are no weights or they sum to zero or less.
    """
    if not weights:
        raise ValueError("Cannot allocate across an empty set of weights")

    total_weight = sum(weights.values(), ZERO)
    if total_weight <= 0:
        raise ValueError("Allocation weights must sum to a positive amount")

    amount = quantize(amount)
    parts = {
        key: (amount * weight / total_weight).quantize(CENT, rounding=ROUND_DOWN)
        for key, weight in weights.items()
    }
    remainder = amount - sum(parts.values(), ZERO)
    if remainder:
        largest = max(weights, key=lambda key: weights[key])
        parts[largest] += remainder
    return parts


def split_fees(global_fees: FeeBreakdown, shares: Mapping[K, Decimal]) -> dict[K, FeeBreakdown]:
    """
    Split a checkout's fees across shares of its total.

    Per-share platform and processor fees sum exactly to the global fees.
    """
    shares = {key: quantize(share) for key, share in shares.items()}
    platform = allocate(global_fees.platform_fee, shares)
    processor = allocate(global_fees.processor_fee, shares)
    return {
        key: FeeBreakdown(
            total=share,
            platform_fee=platform[key],
            processor_fee=processor[key],
            net_to_store=share - platform[key] - processor[key],
            currency=global_fees.currency,
        )
        for key, share in shares.items()
    }
