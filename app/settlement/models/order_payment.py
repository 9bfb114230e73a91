"""
OrderPayment model: one processor payment applied to one order.

A single Stripe payment intent can pay several orders (a multi-store
checkout), so the intent id is unique per order rather than globally.

Usage:
    from settlement.models import OrderPayment

    payment = OrderPayment.objects.create(
        order=order,
        amount=Decimal("100.00"),
        stripe_payment_intent_id="pi_123",
    )
    payment.complete()  # held -> completed
    payment.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin
from core.models import BaseModel
from orders.models import money_field

from settlement.state_machines import (
    CAPTURED_PAYMENT_STATES,
    PaymentState,
    TransferStatus,
)


class OrderPayment(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
    """
    Processor payment attributed to an order.

    State Flow:
        HELD -> COMPLETED -> PARTIALLY_REFUNDED -> REFUNDED
        HELD -> VOID

    Fee columns hold this payment's share of the checkout's fees;
    net_amount_to_store is what the seller's ledger is credited on capture.
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="payments",
    )

    # ==========================================================================
    # Amounts
    # ==========================================================================

    amount = money_field(help_text="Amount applied to the order (major units)")
    currency = models.CharField(max_length=3, default="usd")
    platform_fee_amount = money_field()
    processor_fee_amount = money_field()
    net_amount_to_store = money_field()
    refunded_amount = money_field()

    # ==========================================================================
    # Processor references
    # ==========================================================================

    provider = models.CharField(max_length=20, default="stripe")
    stripe_payment_intent_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Stripe PaymentIntent ID (pi_xxx)",
    )
    stripe_checkout_session_id = models.CharField(
        max_length=255, null=True, blank=True, db_index=True
    )
    stripe_charge_id = models.CharField(max_length=255, null=True, blank=True)

    # ==========================================================================
    # State
    # ==========================================================================

    state = FSMField(
        default=PaymentState.HELD,
        choices=PaymentState.choices,
        db_index=True,
        protected=True,
    )
    transfer_status = models.CharField(
        max_length=20,
        choices=TransferStatus.choices,
        default=TransferStatus.HELD,
    )

    captured_at = models.DateTimeField(null=True, blank=True)
    voided_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the first refund was applied (full or partial)",
    )

    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Order Payment"
        verbose_name_plural = "Order Payments"
        constraints = [
            models.UniqueConstraint(
                fields=["order", "stripe_payment_intent_id"],
                name="unique_payment_per_order_intent",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gte=0),
                name="order_payment_amount_non_negative",
            ),
        ]
        indexes = [
            models.Index(
                fields=["stripe_payment_intent_id", "state"], name="payment_intent_state_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"OrderPayment({self.id}, {self.state}, {self.amount} {self.currency.upper()})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(field=state, source=PaymentState.HELD, target=PaymentState.COMPLETED)
    def complete(self):
        """Capture confirmed by the processor."""
        self.captured_at = timezone.now()

    @transition(field=state, source=PaymentState.HELD, target=PaymentState.VOID)
    def void(self):
        """Authorization canceled before capture."""
        self.voided_at = timezone.now()

    @transition(
        field=state,
        source=[PaymentState.COMPLETED, PaymentState.PARTIALLY_REFUNDED],
        target=PaymentState.PARTIALLY_REFUNDED,
    )
    def refund_partial(self):
        if self.refunded_at is None:
            self.refunded_at = timezone.now()

    @transition(
        field=state,
        source=[PaymentState.COMPLETED, PaymentState.PARTIALLY_REFUNDED],
        target=PaymentState.REFUNDED,
    )
    def refund_full(self):
        if self.refunded_at is None:
            self.refunded_at = timezone.now()

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_captured(self) -> bool:
        return self.state in CAPTURED_PAYMENT_STATES

    @property
    def is_held(self) -> bool:
        return self.state == PaymentState.HELD

    @property
    def refundable_amount(self):
        return self.amount - self.refunded_amount
