"""
Celery tasks for order follow-up work.

Both tasks are queued after a checkout settles (on transaction commit) and
are fire-and-forget: a failure here never affects the settled payment.

Usage:
    from orders.tasks import generate_order_invoice, send_order_confirmation_email

    generate_order_invoice.delay(str(order.id))
    send_order_confirmation_email.delay(str(order.id), [str(other.id)])
"""

from __future__ import annotations

import logging
from smtplib import SMTPException

from celery import shared_task
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.db import OperationalError
from django.template.loader import render_to_string

from orders.models import Order
from orders.services.invoices import InvoiceService

logger = logging.getLogger(__name__)


@shared_task(
    autoretry_for=(OperationalError,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def generate_order_invoice(order_id: str) -> dict:
    """Assign an invoice number to the order (idempotent)."""
    result = InvoiceService.generate_invoice_for_order(order_id)

    if not result.success:
        logger.error(
            f"Invoice generation failed: {result.error}",
            extra={"order_id": str(order_id), "error_code": result.error_code},
        )
        return {"status": "failed", "order_id": str(order_id), "error": result.error}

    return {
        "status": "generated" if result.data.created else "exists",
        "order_id": str(order_id),
        "invoice_number": result.data.invoice_number,
    }


@shared_task
def send_order_confirmation_email(
    order_id: str,
    sibling_order_ids: list[str] | None = None,
) -> dict:
    """
    Email the customer an order confirmation.

    For a multi-store checkout, sibling_order_ids lists the other orders
    paid in the same checkout so the email can mention them.
    """
    order = (
        Order.objects.select_related("store")
        .prefetch_related("items")
        .filter(id=order_id)
        .first()
    )
    if order is None:
        logger.error("Order not found for confirmation email", extra={"order_id": str(order_id)})
        return {"status": "not_found", "order_id": str(order_id)}

    if not order.customer_email:
        logger.info(
            "Order has no customer email, skipping confirmation",
            extra={"order_id": str(order_id)},
        )
        return {"status": "skipped", "order_id": str(order_id)}

    siblings = list(
        Order.objects.select_related("store")
        .filter(id__in=sibling_order_ids or [])
        .exclude(id=order.id)
        .order_by("store__name")
    )
    context = {
        "order": order,
        "items": list(order.items.all()),
        "store": order.store,
        "sibling_orders": siblings,
    }

    email = EmailMultiAlternatives(
        subject=f"Order #{order.order_number} confirmed - {order.store.name}",
        body=render_to_string("orders/email/order_confirmation.txt", context),
        from_email=getattr(settings, "ORDERS_CONFIRMATION_FROM_EMAIL", None)
        or settings.DEFAULT_FROM_EMAIL,
        to=[order.customer_email],
        reply_to=[order.store.email] if order.store.email else None,
    )
    email.attach_alternative(
        render_to_string("orders/email/order_confirmation.html", context),
        "text/html",
    )

    try:
        email.send(fail_silently=False)
    except (SMTPException, OSError) as e:
        logger.error(
            f"Failed to send order confirmation: {e}",
            extra={"order_id": str(order_id)},
            exc_info=True,
        )
        return {"status": "failed", "order_id": str(order_id)}

    logger.info("Order confirmation sent", extra={"order_id": str(order_id)})
    return {"status": "sent", "order_id": str(order_id)}
