"""
State enums for settlement models.

These are Django TextChoices used as django-fsm field choices.

OrderPayment States:
    held → completed → partially_refunded → refunded
    held → void
    (held → refunded is not a transition: uncaptured money cannot be refunded)

SellerPayout States:
    pending → processing → completed
    pending/processing → failed
    pending → canceled
"""

from django.db import models


class PaymentState(models.TextChoices):
    """
    States for the OrderPayment lifecycle.

    Terminal states: VOID, REFUNDED
    """

    HELD = "held", "Held"
    COMPLETED = "completed", "Completed"
    VOID = "void", "Void"
    PARTIALLY_REFUNDED = "partially_refunded", "Partially Refunded"
    REFUNDED = "refunded", "Refunded"


class TransferStatus(models.TextChoices):
    """Where the seller's share of a payment currently sits."""

    HELD = "held", "Held"
    TRANSFERRED = "transferred", "Transferred"
    PENDING_PAYOUT = "pending_payout", "Pending Payout"


class PayoutState(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"
    CANCELED = "canceled", "Canceled"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for WebhookEvent.

    State Flow:
        PENDING → PROCESSING → PROCESSED
        PENDING → PROCESSING → FAILED (redelivery or admin reprocess retries)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"


# Payment states in which money has been captured from the customer
CAPTURED_PAYMENT_STATES = frozenset(
    {
        PaymentState.COMPLETED,
        PaymentState.PARTIALLY_REFUNDED,
        PaymentState.REFUNDED,
    }
)


__all__ = [
    "PaymentState",
    "TransferStatus",
    "PayoutState",
    "WebhookEventStatus",
    "CAPTURED_PAYMENT_STATES",
]
