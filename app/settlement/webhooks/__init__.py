"""
Webhook handling for payment events from Stripe.

Webhooks are verified, stored idempotently, and processed within the
request. Handlers are idempotent against stored state, so Stripe's
redeliveries are harmless.
"""

from settlement.webhooks.handlers import dispatch_webhook, register_handler
from settlement.webhooks.processor import process_webhook_event
from settlement.webhooks.views import stripe_webhook

__all__ = [
    "dispatch_webhook",
    "process_webhook_event",
    "register_handler",
    "stripe_webhook",
]
