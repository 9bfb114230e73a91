"""
Draft order conversion.

A draft becomes an order exactly once. The draft row is locked for the
whole conversion, so when two webhook deliveries (or a webhook and a
seller clicking "complete") race, the loser waits, sees completed=True
and gets the existing order back instead of creating a second one.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from django.db.models import Max
from django.utils import timezone

from core.helpers import parse_uuid
from core.services import BaseService, ServiceResult

from orders.choices import OrderEventType, OrderPaymentStatus
from orders.exceptions import (
    DraftOrderNotFoundError,
    DraftOrderValidationError,
    InventoryReservationError,
)
from orders.inventory import ReservationItem, get_inventory_reserver
from orders.models import (
    DraftOrder,
    LineItemDetails,
    Order,
    OrderDetails,
    OrderItem,
    Store,
)
from orders.services.events import record_order_event


@dataclass(frozen=True)
class DraftConversion:
    order_id: UUID
    order_number: int
    already_completed: bool = False


def next_order_number(store_id) -> int:
    """
    Allocate the next sequential order number for a store.

    Locks the store row, so callers must be inside a transaction.
    """
    Store.objects.select_for_update().only("id").get(id=store_id)
    current = Order.objects.filter(store_id=store_id).aggregate(
        highest=Max("order_number")
    )["highest"]
    return (current or 0) + 1


class DraftOrderService(BaseService):
    @classmethod
    def complete_draft_order(
        cls,
        draft_id,
        mark_as_paid: bool = False,
        created_by=None,
    ) -> ServiceResult[DraftConversion]:
        """
        Convert a draft into an order.

        Creates the order with every customer, address and amount column
        copied from the draft, copies the line items, reserves inventory and
        writes the creation events, then marks the draft completed.

        Args:
            draft_id: DraftOrder id
            mark_as_paid: Also mark the new order paid (manual/offline payment).
                Webhook-driven conversions pass False and let the payment
                record drive the payment status.
            created_by: User performing the conversion, None for the system

        Returns:
            ServiceResult with a DraftConversion. Converting an already
            completed draft succeeds with already_completed=True.

        Raises:
            InventoryReservationError: Stock could not be reserved; nothing
                from the conversion is kept.
        """
        logger = cls.get_logger()

        with cls.atomic():
            draft = DraftOrder.objects.select_for_update().filter(id=parse_uuid(draft_id)).first()
            if draft is None:
                logger.warning("Draft order not found", extra={"draft_id": str(draft_id)})
                return ServiceResult.from_exception(
                    DraftOrderNotFoundError(
                        f"Draft order {draft_id} not found",
                        details={"draft_id": str(draft_id)},
                    )
                )

            if draft.completed:
                order = draft.converted_to_order
                logger.info(
                    "Draft order already converted",
                    extra={"draft_id": str(draft.id), "order_id": str(order.id)},
                )
                return ServiceResult.success(
                    DraftConversion(
                        order_id=order.id,
                        order_number=order.order_number,
                        already_completed=True,
                    )
                )

            items = list(draft.items.all())
            if not items:
                return ServiceResult.from_exception(
                    DraftOrderValidationError("Draft order has no items")
                )
            if not draft.customer_email:
                return ServiceResult.from_exception(
                    DraftOrderValidationError("Draft order has no customer email")
                )

            order = Order.objects.create(
                store_id=draft.store_id,
                customer_id=draft.customer_id,
                order_number=next_order_number(draft.store_id),
                placed_at=timezone.now(),
                **{name: getattr(draft, name) for name in OrderDetails.detail_field_names()},
            )
            OrderItem.objects.bulk_create(
                [
                    OrderItem(
                        order=order,
                        **{
                            name: getattr(item, name)
                            for name in LineItemDetails.detail_field_names()
                        },
                    )
                    for item in items
                ]
            )

            reservation = get_inventory_reserver().reserve(
                [ReservationItem(item.variant_id, item.quantity) for item in items],
                store_id=draft.store_id,
                reason="order_created",
                order_id=order.id,
            )
            if not reservation.success:
                raise InventoryReservationError(
                    reservation.error or "Failed to reserve inventory",
                    details={"draft_id": str(draft.id), "store_id": str(draft.store_id)},
                )

            record_order_event(
                order,
                OrderEventType.SYSTEM,
                f"Order created from draft #{draft.draft_number}",
                metadata={
                    "source": "draft",
                    "draft_id": str(draft.id),
                    "draft_number": draft.draft_number,
                    "mark_as_paid": mark_as_paid,
                },
                created_by=created_by,
            )
            record_order_event(
                order,
                OrderEventType.SYSTEM,
                f"Order confirmation number generated: #{order.order_number}",
                metadata={"order_number": order.order_number},
                created_by=created_by,
            )

            if mark_as_paid:
                order.apply_payment_status(OrderPaymentStatus.PAID)
                order.save(update_fields=["payment_status", "paid_at", "updated_at"])
                record_order_event(
                    order,
                    OrderEventType.PAYMENT,
                    "Payment received",
                    metadata={
                        "amount": str(order.total_amount),
                        "method": "manual" if created_by else "system",
                    },
                    created_by=created_by,
                )

            draft.completed = True
            draft.completed_at = timezone.now()
            draft.converted_to_order = order
            draft.save(
                update_fields=["completed", "completed_at", "converted_to_order", "updated_at"]
            )

        logger.info(
            "Draft order converted",
            extra={
                "draft_id": str(draft.id),
                "order_id": str(order.id),
                "order_number": order.order_number,
                "mark_as_paid": mark_as_paid,
            },
        )
        return ServiceResult.success(
            DraftConversion(order_id=order.id, order_number=order.order_number)
        )
