"""
State machine enums for settlement models.
"""

from settlement.state_machines.states import (
    CAPTURED_PAYMENT_STATES,
    PaymentState,
    PayoutState,
    TransferStatus,
    WebhookEventStatus,
)

__all__ = [
    "CAPTURED_PAYMENT_STATES",
    "PaymentState",
    "PayoutState",
    "TransferStatus",
    "WebhookEventStatus",
]
