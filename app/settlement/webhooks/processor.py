"""
Run a stored WebhookEvent through its handler and record the outcome.

Used by the webhook view (synchronously, inside the request) and by the
admin "Reprocess" action.
"""

from __future__ import annotations

import logging

from django.db import transaction

from core.services import ServiceResult

from settlement.models import WebhookEvent
from settlement.webhooks.handlers import dispatch_webhook

logger = logging.getLogger(__name__)


def process_webhook_event(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Process one webhook event.

    Returns the handler's ServiceResult. A failed result marks the event
    failed; it is not retried.

    Raises:
        Exception: Any exception from the handler, after the event has been
            marked failed. The handler's writes are rolled back.
    """
    webhook_event.mark_processing()
    webhook_event.save()

    logger.info(
        f"Dispatching webhook: {webhook_event.event_type}",
        extra={
            "webhook_event_id": str(webhook_event.id),
            "stripe_event_id": webhook_event.stripe_event_id,
            "event_type": webhook_event.event_type,
            "retry_count": webhook_event.retry_count,
        },
    )

    try:
        with transaction.atomic():
            result = dispatch_webhook(webhook_event)
    except Exception as e:
        error_msg = f"{type(e).__name__}: {str(e)}"
        webhook_event.mark_failed(error_msg)
        webhook_event.save()

        logger.exception(
            "Webhook processing failed with exception",
            extra={
                "webhook_event_id": str(webhook_event.id),
                "stripe_event_id": webhook_event.stripe_event_id,
                "error": error_msg,
            },
        )
        raise

    if result.success:
        webhook_event.mark_processed()
        webhook_event.save()
        logger.info(
            "Webhook processed successfully",
            extra={
                "webhook_event_id": str(webhook_event.id),
                "stripe_event_id": webhook_event.stripe_event_id,
            },
        )
        return result

    error_msg = result.error or "Handler returned failure"
    if result.errors:
        error_msg = f"{error_msg} {result.errors}"
    webhook_event.mark_failed(error_msg)
    webhook_event.save()
    logger.error(
        f"Webhook handler failed: {result.error}",
        extra={
            "webhook_event_id": str(webhook_event.id),
            "stripe_event_id": webhook_event.stripe_event_id,
            "event_type": webhook_event.event_type,
            "error_code": result.error_code,
        },
    )
    return result
