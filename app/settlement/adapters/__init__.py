"""
Adapters for external payment services.

All Stripe API calls made by the settlement engine go through
StripeAdapter for consistent error handling, timeouts and logging.
"""

from settlement.adapters.stripe_adapter import (
    BalanceAmount,
    BalanceResult,
    CheckoutSessionResult,
    IdempotencyKeyGenerator,
    PaymentIntentResult,
    PayoutResult,
    RefundResult,
    StripeAdapter,
)

__all__ = [
    "BalanceAmount",
    "BalanceResult",
    "CheckoutSessionResult",
    "IdempotencyKeyGenerator",
    "PaymentIntentResult",
    "PayoutResult",
    "RefundResult",
    "StripeAdapter",
]
