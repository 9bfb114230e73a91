"""
Stripe webhook endpoint.

POST /api/v1/settlement/webhooks/stripe/

Events are verified, stored once per Stripe event id and processed inside
the request. The response code is the only thing Stripe acts on:

    400  signature or payload unusable; Stripe gives up after retries
    200  processed, already processed, or failed for good (logged)
    500  processing raised; Stripe redelivers and the stored event is retried
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.helpers import get_client_ip

from settlement.adapters import StripeAdapter
from settlement.exceptions import StripeError
from settlement.models import WebhookEvent
from settlement.webhooks.processor import process_webhook_event

logger = logging.getLogger(__name__)


def _verified_event(request: HttpRequest) -> dict | None:
    signature = request.headers.get("Stripe-Signature", "")
    if not signature:
        logger.warning(
            "Stripe webhook without signature header",
            extra={"ip": get_client_ip(request)},
        )
        return None

    try:
        event_data = StripeAdapter.verify_webhook_signature(request.body, signature)
    except StripeError as e:
        logger.warning(
            "Stripe webhook rejected",
            extra={"error": e.message, "ip": get_client_ip(request), **e.details},
        )
        return None

    if not event_data.get("id") or not event_data.get("type"):
        logger.warning("Stripe webhook without event id or type")
        return None
    return event_data


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    event_data = _verified_event(request)
    if event_data is None:
        return HttpResponse("Invalid webhook", status=400)

    webhook_event, created = WebhookEvent.record(event_data)
    log_context = {
        "stripe_event_id": webhook_event.stripe_event_id,
        "event_type": webhook_event.event_type,
        "webhook_created": created,
    }

    if webhook_event.is_processed:
        logger.info("Stripe webhook already processed", extra=log_context)
        return HttpResponse("Already processed", status=200)

    logger.info(
        f"Stripe webhook received: {webhook_event.event_type}",
        extra={**log_context, "status": webhook_event.status},
    )

    try:
        result = process_webhook_event(webhook_event)
    except Exception:
        # Logged and marked failed by the processor
        return HttpResponse("Processing error", status=500)

    if not result:
        return HttpResponse(f"Not processed: {result.error_code}", status=200)
    return HttpResponse("Processed", status=200)
