"""
Settlement domain models.

- OrderPayment: A processor payment applied to one order
- WebhookEvent: Stripe webhook event tracking for idempotent processing

The seller ledger models live in settlement.ledger.models and are
re-exported here so Django registers them with the settlement app.
"""

from settlement.ledger.models import (
    SellerBalance,
    SellerBalanceTransaction,
    SellerPayout,
    SellerPayoutSettings,
)
from settlement.models.order_payment import OrderPayment
from settlement.models.webhook_event import WebhookEvent

__all__ = [
    "OrderPayment",
    "SellerBalance",
    "SellerBalanceTransaction",
    "SellerPayout",
    "SellerPayoutSettings",
    "WebhookEvent",
]
