"""
Status enums for order models.

Order lifecycle:
    status:             open → completed (payment captured AND fulfilled/partial)
                        open → canceled / archived
    payment_status:     pending → paid → partially_refunded → refunded
                        pending → void | failed
    fulfillment_status: unfulfilled → partial → fulfilled
"""

from django.db import models


class OrderStatus(models.TextChoices):
    OPEN = "open", "Open"
    DRAFT = "draft", "Draft"
    ARCHIVED = "archived", "Archived"
    CANCELED = "canceled", "Canceled"
    COMPLETED = "completed", "Completed"


class OrderPaymentStatus(models.TextChoices):
    """
    Aggregate payment status of an order.

    Derived from the order's payment records, never set directly.
    """

    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    PARTIALLY_REFUNDED = "partially_refunded", "Partially Refunded"
    REFUNDED = "refunded", "Refunded"
    VOID = "void", "Void"
    FAILED = "failed", "Failed"


class FulfillmentStatus(models.TextChoices):
    UNFULFILLED = "unfulfilled", "Unfulfilled"
    PARTIAL = "partial", "Partially Fulfilled"
    FULFILLED = "fulfilled", "Fulfilled"
    CANCELED = "canceled", "Canceled"


class OrderEventType(models.TextChoices):
    SYSTEM = "system", "System"
    PAYMENT = "payment", "Payment"
    REFUND = "refund", "Refund"
    FULFILLMENT = "fulfillment", "Fulfillment"
    INVOICE = "invoice", "Invoice"
    NOTE = "note", "Note"


class EventVisibility(models.TextChoices):
    INTERNAL = "internal", "Internal"
    CUSTOMER = "customer", "Customer"


class RefundStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    SUCCEEDED = "succeeded", "Succeeded"
    FAILED = "failed", "Failed"
    CANCELED = "canceled", "Canceled"


# Payment states in which money has actually been captured
CAPTURED_PAYMENT_STATUSES = frozenset(
    {OrderPaymentStatus.PAID, OrderPaymentStatus.PARTIALLY_REFUNDED}
)

# Fulfillment states that allow an order to complete
COMPLETABLE_FULFILLMENT_STATUSES = frozenset(
    {FulfillmentStatus.FULFILLED, FulfillmentStatus.PARTIAL}
)


__all__ = [
    "OrderStatus",
    "OrderPaymentStatus",
    "FulfillmentStatus",
    "OrderEventType",
    "EventVisibility",
    "RefundStatus",
    "CAPTURED_PAYMENT_STATUSES",
    "COMPLETABLE_FULFILLMENT_STATUSES",
]
