"""
Order domain models.

- Store: A seller's storefront and its Stripe Connect capabilities
- Order / OrderItem: Placed orders and their line items
- DraftOrder / DraftOrderItem: Seller-built orders awaiting payment
- OrderEvent: Append-only order timeline
- OrderRefund: Processor refunds attributed to an order payment
- InventoryLevel: Per-variant stock counts backing inventory reservation

Orders and drafts share every customer, address and amount column through
the abstract OrderDetails model, so converting a draft copies exactly the
columns that both tables have in common.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import RETURN_VALUE, FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from orders.choices import (
    CAPTURED_PAYMENT_STATUSES,
    EventVisibility,
    FulfillmentStatus,
    OrderEventType,
    OrderPaymentStatus,
    OrderStatus,
    RefundStatus,
)
from orders.exceptions import ImmutableRecordError


def money_field(**kwargs) -> models.DecimalField:
    """Decimal column for major-unit amounts."""
    kwargs.setdefault("max_digits", 12)
    kwargs.setdefault("decimal_places", 2)
    kwargs.setdefault("default", Decimal("0.00"))
    return models.DecimalField(**kwargs)


# =============================================================================
# Store
# =============================================================================


class Store(UUIDPrimaryKeyMixin, BaseModel):
    """
    A seller storefront.

    The Stripe flags mirror the connected account's capabilities and are
    kept current by the account.updated webhook.
    """

    name = models.CharField(max_length=200)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stores",
    )
    email = models.EmailField(blank=True, default="")
    currency = models.CharField(max_length=3, default="usd")

    stripe_account_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Stripe Connect account ID (acct_xxx)",
    )
    stripe_charges_enabled = models.BooleanField(default=False)
    stripe_payouts_enabled = models.BooleanField(default=False)
    stripe_onboarding_complete = models.BooleanField(default=False)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


# =============================================================================
# Shared order columns
# =============================================================================


class OrderDetails(models.Model):
    """Customer, address and amount columns shared by orders and drafts."""

    customer_email = models.EmailField(blank=True, default="")
    customer_first_name = models.CharField(max_length=100, blank=True, default="")
    customer_last_name = models.CharField(max_length=100, blank=True, default="")

    shipping_name = models.CharField(max_length=200, blank=True, default="")
    shipping_phone = models.CharField(max_length=50, blank=True, default="")
    shipping_address_line1 = models.CharField(max_length=255, blank=True, default="")
    shipping_address_line2 = models.CharField(max_length=255, blank=True, default="")
    shipping_city = models.CharField(max_length=100, blank=True, default="")
    shipping_region = models.CharField(max_length=100, blank=True, default="")
    shipping_postal_code = models.CharField(max_length=20, blank=True, default="")
    shipping_country = models.CharField(max_length=2, blank=True, default="")
    shipping_method = models.CharField(max_length=100, blank=True, default="")

    billing_name = models.CharField(max_length=200, blank=True, default="")
    billing_phone = models.CharField(max_length=50, blank=True, default="")
    billing_address_line1 = models.CharField(max_length=255, blank=True, default="")
    billing_address_line2 = models.CharField(max_length=255, blank=True, default="")
    billing_city = models.CharField(max_length=100, blank=True, default="")
    billing_region = models.CharField(max_length=100, blank=True, default="")
    billing_postal_code = models.CharField(max_length=20, blank=True, default="")
    billing_country = models.CharField(max_length=2, blank=True, default="")

    currency = models.CharField(max_length=3, default="usd")
    subtotal_amount = money_field()
    discount_amount = money_field()
    shipping_amount = money_field()
    tax_amount = money_field()
    total_amount = money_field()

    class Meta:
        abstract = True

    @classmethod
    def detail_field_names(cls) -> list[str]:
        return [f.name for f in OrderDetails._meta.local_fields]

    @property
    def customer_name(self) -> str:
        return f"{self.customer_first_name} {self.customer_last_name}".strip()


class LineItemDetails(models.Model):
    """Line item columns shared by order items and draft items."""

    product_id = models.UUIDField(null=True, blank=True)
    variant_id = models.UUIDField(null=True, blank=True, db_index=True)
    title = models.CharField(max_length=255)
    sku = models.CharField(max_length=100, blank=True, default="")
    quantity = models.PositiveIntegerField(default=1)
    unit_price = money_field()
    currency = models.CharField(max_length=3, default="usd")
    line_subtotal = money_field()
    line_total = money_field()

    class Meta:
        abstract = True

    @classmethod
    def detail_field_names(cls) -> list[str]:
        return [f.name for f in LineItemDetails._meta.local_fields]


# =============================================================================
# Order
# =============================================================================


class Order(UUIDPrimaryKeyMixin, OrderDetails, BaseModel):
    """
    A placed order belonging to exactly one store.

    payment_status is protected: it only changes through
    apply_payment_status(), which the order status service calls after
    aggregating the order's payment records.
    """

    store = models.ForeignKey(Store, on_delete=models.PROTECT, related_name="orders")
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    order_number = models.PositiveIntegerField(
        help_text="Sequential per store; shown to customers as #N",
    )

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.OPEN,
        db_index=True,
    )
    payment_status = FSMField(
        default=OrderPaymentStatus.PENDING,
        choices=OrderPaymentStatus.choices,
        db_index=True,
        protected=True,
    )
    fulfillment_status = models.CharField(
        max_length=20,
        choices=FulfillmentStatus.choices,
        default=FulfillmentStatus.UNFULFILLED,
        db_index=True,
    )
    refunded_amount = money_field()

    placed_at = models.DateTimeField(default=timezone.now)
    paid_at = models.DateTimeField(null=True, blank=True)
    fulfilled_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    invoice_number = models.CharField(max_length=50, null=True, blank=True)
    invoice_issued_at = models.DateTimeField(null=True, blank=True)

    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "order_number"],
                name="unique_order_number_per_store",
            ),
            models.UniqueConstraint(
                fields=["store", "invoice_number"],
                name="unique_invoice_number_per_store",
            ),
        ]
        indexes = [
            models.Index(fields=["store", "status"], name="order_store_status_idx"),
            models.Index(fields=["store", "payment_status"], name="order_store_payment_idx"),
        ]

    def __str__(self) -> str:
        return f"Order #{self.order_number} ({self.store_id})"

    @transition(
        field=payment_status,
        source="*",
        target=RETURN_VALUE(*OrderPaymentStatus.values),
    )
    def apply_payment_status(self, status: str) -> str:
        """Move to ``status``; stamps paid_at the first time money is captured."""
        if status in CAPTURED_PAYMENT_STATUSES and self.paid_at is None:
            self.paid_at = timezone.now()
        return status

    @property
    def is_payment_captured(self) -> bool:
        return self.payment_status in CAPTURED_PAYMENT_STATUSES


class OrderItem(UUIDPrimaryKeyMixin, LineItemDetails, BaseModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.quantity} x {self.title}"


# =============================================================================
# Draft orders
# =============================================================================


class DraftOrder(UUIDPrimaryKeyMixin, OrderDetails, BaseModel):
    """
    A seller-built order that becomes a real Order exactly once.

    Once converted (completed=True) the draft is kept for history and can
    no longer be deleted.
    """

    store = models.ForeignKey(
        Store, on_delete=models.PROTECT, related_name="draft_orders"
    )
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="draft_orders",
    )
    draft_number = models.PositiveIntegerField()
    completed = models.BooleanField(default=False, db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    converted_to_order = models.OneToOneField(
        Order,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="source_draft",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "draft_number"],
                name="unique_draft_number_per_store",
            ),
        ]

    def __str__(self) -> str:
        return f"Draft #{self.draft_number} ({self.store_id})"

    def delete(self, *args, **kwargs):
        if self.completed:
            raise ImmutableRecordError(
                f"Draft #{self.draft_number} was converted and cannot be deleted",
                details={"draft_id": str(self.id)},
            )
        return super().delete(*args, **kwargs)


class DraftOrderItem(UUIDPrimaryKeyMixin, LineItemDetails, BaseModel):
    draft = models.ForeignKey(
        DraftOrder, on_delete=models.CASCADE, related_name="items"
    )

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.quantity} x {self.title}"


# =============================================================================
# Timeline
# =============================================================================


class OrderEvent(UUIDPrimaryKeyMixin, models.Model):
    """
    Append-only order timeline entry.

    created_by is null for events written by the system (webhooks, tasks).
    """

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="events")
    type = models.CharField(max_length=20, choices=OrderEventType.choices)
    visibility = models.CharField(
        max_length=20,
        choices=EventVisibility.choices,
        default=EventVisibility.INTERNAL,
    )
    message = models.TextField()
    metadata = models.JSONField(default=dict, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [models.Index(fields=["order", "type"], name="order_event_type_idx")]

    def __str__(self) -> str:
        return f"{self.type}: {self.message}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError("Order events cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError("Order events cannot be deleted")


# =============================================================================
# Refunds
# =============================================================================


class OrderRefund(UUIDPrimaryKeyMixin, BaseModel):
    """
    A processor refund attributed to one order payment.

    A Stripe refund against a multi-store payment intent is split across
    payments, so one stripe_refund_id may appear on several rows, but only
    once per payment.
    """

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="refunds")
    order_payment = models.ForeignKey(
        "settlement.OrderPayment",
        on_delete=models.PROTECT,
        related_name="refunds",
    )
    provider = models.CharField(max_length=20, default="stripe")
    amount = money_field()
    currency = models.CharField(max_length=3, default="usd")
    reason = models.CharField(max_length=255, blank=True, default="")
    stripe_refund_id = models.CharField(max_length=255, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=RefundStatus.choices,
        default=RefundStatus.PENDING,
    )
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["stripe_refund_id", "order_payment"],
                name="unique_refund_per_payment",
            ),
        ]

    def __str__(self) -> str:
        return f"Refund {self.stripe_refund_id} ({self.amount} {self.currency.upper()})"


# =============================================================================
# Inventory
# =============================================================================


class InventoryLevel(UUIDPrimaryKeyMixin, BaseModel):
    """Stock for one variant in one store."""

    store = models.ForeignKey(
        Store, on_delete=models.CASCADE, related_name="inventory_levels"
    )
    variant_id = models.UUIDField()
    available = models.IntegerField(default=0)
    committed = models.IntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["store", "variant_id"],
                name="unique_inventory_per_variant",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.variant_id}: {self.available} available"
