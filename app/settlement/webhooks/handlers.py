"""
Webhook event handlers for Stripe events.

Each handler takes a WebhookEvent and returns a ServiceResult:

- success: the event was applied (or was a no-op against stored state)
- failure: the event can never be applied (missing rows, bad metadata);
  it is acknowledged and logged
- raise: a transient problem (database, Stripe); the event is marked failed
  and Stripe redelivers it

Usage:
    from settlement.webhooks.handlers import dispatch_webhook, register_handler

    @register_handler("custom.event")
    def handle_custom_event(webhook_event: WebhookEvent) -> ServiceResult:
        ...

    result = dispatch_webhook(webhook_event)
"""

from __future__ import annotations

import logging
from typing import Callable

from core.services import ServiceResult
from orders.models import Store

from settlement.models import WebhookEvent
from settlement.services import (
    CheckoutSettlementService,
    PaymentStateService,
    RefundReconciler,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event type strings to handler functions
WEBHOOK_HANDLERS: dict[str, Callable[[WebhookEvent], ServiceResult]] = {}


def register_handler(*event_types: str) -> Callable:
    """
    Decorator to register a webhook event handler for one or more types.

    Usage:
        @register_handler("refund.updated", "charge.refunded")
        def handle_refund(webhook_event: WebhookEvent) -> ServiceResult:
            ...
    """

    def decorator(func: Callable[[WebhookEvent], ServiceResult]) -> Callable:
        for event_type in event_types:
            WEBHOOK_HANDLERS[event_type] = func
            logger.debug(f"Registered webhook handler for {event_type}")
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Dispatch a webhook event to the appropriate handler.

    Unknown event types are acknowledged with a successful empty result.
    """
    handler = WEBHOOK_HANDLERS.get(webhook_event.event_type)

    if not handler:
        logger.info(
            f"No handler registered for event type: {webhook_event.event_type}",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.success(None)

    logger.info(
        f"Dispatching {webhook_event.event_type} to handler",
        extra={"stripe_event_id": webhook_event.stripe_event_id},
    )

    return handler(webhook_event)


def _invalid_payload(webhook_event: WebhookEvent, field_name: str) -> ServiceResult:
    logger.error(
        f"{webhook_event.event_type}: Could not extract {field_name}",
        extra={"stripe_event_id": webhook_event.stripe_event_id},
    )
    return ServiceResult.failure(
        f"Could not extract {field_name} from webhook",
        error_code="INVALID_WEBHOOK_PAYLOAD",
    )


def _related_id(value) -> str | None:
    if isinstance(value, dict):
        return value.get("id")
    return value or None


# =============================================================================
# Checkout Handlers
# =============================================================================


@register_handler("checkout.session.completed")
def handle_checkout_session_completed(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Settle a completed checkout session.

    The session is re-read from Stripe; the payload only supplies its id and
    a fallback payment intent id.
    """
    session = webhook_event.get_object()
    session_id = session.get("id")
    if not session_id:
        return _invalid_payload(webhook_event, "checkout_session_id")

    logger.info(
        "Processing checkout.session.completed",
        extra={
            "stripe_event_id": webhook_event.stripe_event_id,
            "checkout_session_id": session_id,
        },
    )

    return CheckoutSettlementService.settle_checkout_session(
        session_id,
        fallback_payment_intent_id=_related_id(session.get("payment_intent")),
    )


# =============================================================================
# Payment Intent Handlers
# =============================================================================


@register_handler("payment_intent.succeeded")
def handle_payment_intent_succeeded(webhook_event: WebhookEvent) -> ServiceResult:
    """Capture every held payment recorded for the intent."""
    payment_intent_id = webhook_event.get_object_id()
    if not payment_intent_id:
        return _invalid_payload(webhook_event, "payment_intent_id")

    logger.info(
        "Processing payment_intent.succeeded",
        extra={
            "stripe_event_id": webhook_event.stripe_event_id,
            "payment_intent_id": payment_intent_id,
        },
    )
    return PaymentStateService.capture_intent(payment_intent_id)


@register_handler("payment_intent.canceled")
def handle_payment_intent_canceled(webhook_event: WebhookEvent) -> ServiceResult:
    payment_intent_id = webhook_event.get_object_id()
    if not payment_intent_id:
        return _invalid_payload(webhook_event, "payment_intent_id")

    logger.info(
        "Processing payment_intent.canceled",
        extra={
            "stripe_event_id": webhook_event.stripe_event_id,
            "payment_intent_id": payment_intent_id,
        },
    )
    return PaymentStateService.void_intent(payment_intent_id)


# =============================================================================
# Refund Handlers
# =============================================================================


@register_handler("charge.refund.updated", "refund.updated", "charge.refunded")
def handle_refund_updated(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Reconcile refunds for the payment intent behind a refund or charge.

    The event object is a Refund for the refund events and a Charge for
    charge.refunded; both carry payment_intent.
    """
    payment_intent_id = _related_id(webhook_event.get_object().get("payment_intent"))
    if not payment_intent_id:
        return _invalid_payload(webhook_event, "payment_intent_id")

    logger.info(
        f"Processing {webhook_event.event_type}",
        extra={
            "stripe_event_id": webhook_event.stripe_event_id,
            "payment_intent_id": payment_intent_id,
        },
    )
    return RefundReconciler.reconcile(payment_intent_id)


# =============================================================================
# Connect Account Handlers
# =============================================================================


@register_handler("account.updated")
def handle_account_updated(webhook_event: WebhookEvent) -> ServiceResult:
    """Sync a store's Stripe capability flags from its connected account."""
    account = webhook_event.get_object()
    account_id = account.get("id")
    if not account_id:
        return _invalid_payload(webhook_event, "account_id")

    updated = Store.objects.filter(stripe_account_id=account_id).update(
        stripe_charges_enabled=bool(account.get("charges_enabled")),
        stripe_payouts_enabled=bool(account.get("payouts_enabled")),
        stripe_onboarding_complete=bool(account.get("details_submitted")),
    )
    if not updated:
        logger.warning(
            "Store not found for Stripe account",
            extra={
                "stripe_event_id": webhook_event.stripe_event_id,
                "stripe_account_id": account_id,
            },
        )
        return ServiceResult.failure(
            f"Store not found for account: {account_id}",
            error_code="STORE_NOT_FOUND",
        )

    logger.info(
        "Store Stripe capabilities synced",
        extra={
            "stripe_account_id": account_id,
            "charges_enabled": bool(account.get("charges_enabled")),
            "payouts_enabled": bool(account.get("payouts_enabled")),
        },
    )
    return ServiceResult.success(updated)
