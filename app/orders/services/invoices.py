"""
Invoice numbering for orders.

Invoice numbers are per store and per calendar year:
``INV-<year>-<sequence>`` with a six digit, zero padded sequence.
Assigning a number is idempotent: an order keeps the first number it got.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from django.utils import timezone

from core.helpers import parse_uuid
from core.services import BaseService, ServiceResult

from orders.choices import OrderEventType
from orders.models import Order, Store
from orders.services.events import record_order_event

INVOICE_NUMBER_PATTERN = re.compile(r"^INV-(\d{4})-(\d+)$")


@dataclass(frozen=True)
class InvoiceResult:
    invoice_number: str
    invoice_pdf_url: str | None = None
    created: bool = False


def next_invoice_number(store_id, year: int) -> str:
    """Next invoice number for the store in ``year``; caller holds the store lock."""
    prefix = f"INV-{year}-"
    highest = 0
    numbers = Order.objects.filter(
        store_id=store_id, invoice_number__startswith=prefix
    ).values_list("invoice_number", flat=True)
    for number in numbers:
        match = INVOICE_NUMBER_PATTERN.match(number)
        if match:
            highest = max(highest, int(match.group(2)))
    return f"{prefix}{highest + 1:06d}"


class InvoiceService(BaseService):
    @classmethod
    def generate_invoice_for_order(cls, order_id) -> ServiceResult[InvoiceResult]:
        with cls.atomic():
            order = Order.objects.select_for_update().filter(id=parse_uuid(order_id)).first()
            if order is None:
                return ServiceResult.failure(
                    f"Order {order_id} not found", error_code="ORDER_NOT_FOUND"
                )

            if order.invoice_number:
                return ServiceResult.success(InvoiceResult(order.invoice_number))

            Store.objects.select_for_update().only("id").get(id=order.store_id)
            issued_at = timezone.now()
            order.invoice_number = next_invoice_number(order.store_id, issued_at.year)
            order.invoice_issued_at = issued_at
            order.save(update_fields=["invoice_number", "invoice_issued_at", "updated_at"])

            record_order_event(
                order,
                OrderEventType.INVOICE,
                f"Invoice {order.invoice_number} generated",
                metadata={"invoice_number": order.invoice_number},
            )

        cls.get_logger().info(
            "Invoice generated",
            extra={"order_id": str(order.id), "invoice_number": order.invoice_number},
        )
        return ServiceResult.success(InvoiceResult(order.invoice_number, created=True))
