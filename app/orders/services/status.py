"""
Order status aggregation.

An order's payment_status is derived from its payment records and its
status moves to completed once money is captured and the goods have
(at least partly) shipped. Both inputs can change in either order, so
every path that changes one of them finishes with evaluate_completion().
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from django.utils import timezone

from core.helpers import parse_uuid
from core.services import BaseService, ServiceResult

from orders.choices import (
    CAPTURED_PAYMENT_STATUSES,
    COMPLETABLE_FULFILLMENT_STATUSES,
    FulfillmentStatus,
    OrderEventType,
    OrderPaymentStatus,
    OrderStatus,
)
from orders.models import Order
from orders.services.events import record_order_event

if TYPE_CHECKING:
    from collections.abc import Iterable


class OrderStatusService(BaseService):
    """Keeps Order.payment_status, refunded_amount and status consistent."""

    @staticmethod
    def aggregate_payment_status(payments: Iterable) -> str | None:
        """
        Derive the order payment status from its payment records.

        Returns None when there are no payments, meaning "leave unchanged".
        """
        payments = list(payments)
        if not payments:
            return None

        captured = [p for p in payments if p.is_captured]
        if captured:
            captured_total = sum((p.amount for p in captured), Decimal("0"))
            refunded_total = sum((p.refunded_amount for p in captured), Decimal("0"))
            if refunded_total <= 0:
                return OrderPaymentStatus.PAID
            if refunded_total >= captured_total:
                return OrderPaymentStatus.REFUNDED
            return OrderPaymentStatus.PARTIALLY_REFUNDED

        if any(p.is_held for p in payments):
            return OrderPaymentStatus.PENDING
        return OrderPaymentStatus.VOID

    @classmethod
    def sync_payment_status(cls, order: Order) -> Order:
        """
        Recompute payment_status and refunded_amount from the order's payments.

        The caller is expected to hold a row lock on the order.
        """
        payments = list(order.payments.all())
        status = cls.aggregate_payment_status(payments)
        if status is None:
            return order

        refunded = sum((p.refunded_amount for p in payments), Decimal("0.00"))
        update_fields = []

        if order.payment_status != status:
            previous = order.payment_status
            order.apply_payment_status(status)
            update_fields += ["payment_status", "paid_at"]
            cls.get_logger().info(
                "Order payment status changed",
                extra={
                    "order_id": str(order.id),
                    "from_status": previous,
                    "to_status": status,
                },
            )

        if order.refunded_amount != refunded:
            order.refunded_amount = refunded
            update_fields.append("refunded_amount")

        if update_fields:
            order.save(update_fields=[*update_fields, "updated_at"])

        cls.evaluate_completion(order)
        return order

    @classmethod
    def evaluate_completion(cls, order: Order) -> bool:
        """
        Complete an open order whose payment is captured and fulfillment done.

        Returns True if the order was completed by this call.
        """
        if order.status != OrderStatus.OPEN:
            return False
        if order.payment_status not in CAPTURED_PAYMENT_STATUSES:
            return False
        if order.fulfillment_status not in COMPLETABLE_FULFILLMENT_STATUSES:
            return False

        order.status = OrderStatus.COMPLETED
        order.completed_at = timezone.now()
        order.save(update_fields=["status", "completed_at", "updated_at"])

        cls.get_logger().info(
            "Order completed",
            extra={
                "order_id": str(order.id),
                "payment_status": order.payment_status,
                "fulfillment_status": order.fulfillment_status,
            },
        )
        return True

    @classmethod
    def update_fulfillment_status(
        cls,
        order_id,
        fulfillment_status: str,
        created_by=None,
    ) -> ServiceResult[Order]:
        if fulfillment_status not in FulfillmentStatus.values:
            return ServiceResult.failure(
                f"Unknown fulfillment status: {fulfillment_status}",
                error_code="INVALID_FULFILLMENT_STATUS",
            )

        with cls.atomic():
            order = Order.objects.select_for_update().filter(id=parse_uuid(order_id)).first()
            if order is None:
                return ServiceResult.failure(
                    f"Order {order_id} not found", error_code="ORDER_NOT_FOUND"
                )

            if order.fulfillment_status == fulfillment_status:
                return ServiceResult.success(order)

            previous = order.fulfillment_status
            order.fulfillment_status = fulfillment_status
            if fulfillment_status == FulfillmentStatus.FULFILLED:
                order.fulfilled_at = timezone.now()
            order.save(update_fields=["fulfillment_status", "fulfilled_at", "updated_at"])

            record_order_event(
                order,
                OrderEventType.FULFILLMENT,
                f"Fulfillment status changed from {previous} to {fulfillment_status}",
                metadata={"from": previous, "to": fulfillment_status},
                created_by=created_by,
            )
            cls.evaluate_completion(order)

        return ServiceResult.success(order)
