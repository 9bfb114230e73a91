"""
Seller ledger models.

- SellerBalance: Cached available / pending balance, one row per store
- SellerBalanceTransaction: Immutable, signed ledger entry
- SellerPayoutSettings: Per-store payout preferences and hold period
- SellerPayout: A payout of available funds to the store's Stripe account

The ledger is the source of truth. SellerBalance is a cache that only
SellerLedgerService writes, always in the same transaction as the entry
that changes it, and refresh_balance() can rebuild it from the entries at
any time.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from orders.models import money_field

from settlement.ledger.exceptions import ImmutableTransactionError
from settlement.state_machines import PayoutState


class TransactionType(models.TextChoices):
    """
    Ledger transaction types.

    ORDER_PAYMENT is the only credit. ADJUSTMENT takes the sign of its
    amount. Everything else is a debit.
    """

    ORDER_PAYMENT = "order_payment", "Order Payment"
    PLATFORM_FEE = "platform_fee", "Platform Fee"
    STRIPE_FEE = "stripe_fee", "Stripe Fee"
    SHIPPING_LABEL = "shipping_label", "Shipping Label"
    REFUND = "refund", "Refund"
    DISPUTE = "dispute", "Dispute"
    PAYOUT = "payout", "Payout"
    ADJUSTMENT = "adjustment", "Adjustment"


class TransactionStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    AVAILABLE = "available", "Available"
    PAID = "paid", "Paid"


class PayoutSchedule(models.TextChoices):
    MANUAL = "manual", "Manual"
    DAILY = "daily", "Daily"
    WEEKLY = "weekly", "Weekly"
    MONTHLY = "monthly", "Monthly"


class SellerBalance(UUIDPrimaryKeyMixin, BaseModel):
    store = models.OneToOneField(
        "orders.Store",
        on_delete=models.CASCADE,
        related_name="balance",
    )
    available_balance = money_field(help_text="Funds past their hold period")
    pending_balance = money_field(help_text="Funds still inside the hold period")
    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="Set by the first transaction recorded for the store",
    )
    last_payout_at = models.DateTimeField(null=True, blank=True)
    last_payout_amount = money_field(null=True, blank=True, default=None)
    last_recomputed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Seller Balance"
        verbose_name_plural = "Seller Balances"

    def __str__(self) -> str:
        return f"Balance({self.store_id}: {self.total_balance} {self.currency.upper()})"

    @property
    def total_balance(self) -> Decimal:
        return self.available_balance + self.pending_balance


class SellerBalanceTransaction(UUIDPrimaryKeyMixin, models.Model):
    """
    An immutable, signed movement on a store's balance.

    ``amount`` is signed: credits are positive, debits negative.
    balance_before / balance_after are the store's total (available +
    pending) balance around this entry.

    Entries count towards the available balance once ``available_at`` has
    passed and towards the pending balance until then.
    """

    store = models.ForeignKey(
        "orders.Store",
        on_delete=models.PROTECT,
        related_name="balance_transactions",
    )
    type = models.CharField(max_length=20, choices=TransactionType.choices)
    amount = money_field(help_text="Signed amount: credits positive, debits negative")
    currency = models.CharField(max_length=3, default="usd")
    balance_before = money_field()
    balance_after = money_field()

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="balance_transactions",
    )
    order_payment = models.ForeignKey(
        "settlement.OrderPayment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="balance_transactions",
    )
    payout = models.ForeignKey(
        "settlement.SellerPayout",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="balance_transactions",
    )

    status = models.CharField(
        max_length=20,
        choices=TransactionStatus.choices,
        default=TransactionStatus.AVAILABLE,
    )
    available_at = models.DateTimeField(db_index=True)
    description = models.TextField(blank=True, default="")
    idempotency_key = models.CharField(max_length=255, unique=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Seller Balance Transaction"
        verbose_name_plural = "Seller Balance Transactions"
        indexes = [
            models.Index(fields=["store", "available_at"], name="ledger_store_available_idx"),
            models.Index(fields=["store", "type"], name="ledger_store_type_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(amount=0),
                name="seller_balance_transaction_amount_non_zero",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_type_display()}: {self.amount} {self.currency.upper()}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableTransactionError(
                "Ledger transactions cannot be modified",
                details={"transaction_id": str(self.id)},
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableTransactionError(
            "Ledger transactions cannot be deleted",
            details={"transaction_id": str(self.id)},
        )

    @property
    def is_credit(self) -> bool:
        return self.amount > 0


class SellerPayoutSettings(UUIDPrimaryKeyMixin, BaseModel):
    store = models.OneToOneField(
        "orders.Store",
        on_delete=models.CASCADE,
        related_name="payout_settings",
    )
    schedule = models.CharField(
        max_length=20,
        choices=PayoutSchedule.choices,
        default=PayoutSchedule.MANUAL,
        help_text="Anything but manual pays out the available balance automatically",
    )
    next_payout_at = models.DateTimeField(null=True, blank=True, db_index=True)
    minimum_amount = money_field(default=Decimal("20.00"))
    hold_period_days = models.PositiveSmallIntegerField(
        default=7,
        help_text="Days an order payment stays pending before it can be paid out",
    )

    class Meta:
        verbose_name = "Seller Payout Settings"
        verbose_name_plural = "Seller Payout Settings"

    def __str__(self) -> str:
        return f"PayoutSettings({self.store_id}, {self.schedule})"

    def save(self, *args, **kwargs):
        if self.schedule == PayoutSchedule.MANUAL:
            self.next_payout_at = None
        elif self.next_payout_at is None:
            self.next_payout_at = self.next_payout_after(timezone.now())
        super().save(*args, **kwargs)

    def next_payout_after(self, moment: datetime) -> datetime | None:
        """
        The first scheduled payout after ``moment``, or None for manual payouts.

        Monthly payouts fall on the same day of the following month, clamped
        to its last day.
        """
        if self.schedule == PayoutSchedule.DAILY:
            return moment + timedelta(days=1)
        if self.schedule == PayoutSchedule.WEEKLY:
            return moment + timedelta(weeks=1)
        if self.schedule == PayoutSchedule.MONTHLY:
            month = moment.month % 12 + 1
            year = moment.year + 1 if month == 1 else moment.year
            day = min(moment.day, calendar.monthrange(year, month)[1])
            return moment.replace(year=year, month=month, day=day)
        return None


class SellerPayout(UUIDPrimaryKeyMixin, BaseModel):
    """
    A payout from a store's Stripe balance to its bank account.

    State Flow:
        PENDING -> PROCESSING -> COMPLETED
        PENDING/PROCESSING -> FAILED
        PENDING -> CANCELED
    """

    store = models.ForeignKey(
        "orders.Store",
        on_delete=models.PROTECT,
        related_name="payouts",
    )
    amount = money_field()
    currency = models.CharField(max_length=3, default="usd")
    status = FSMField(
        default=PayoutState.PENDING,
        choices=PayoutState.choices,
        db_index=True,
        protected=True,
    )
    stripe_payout_id = models.CharField(max_length=255, null=True, blank=True, unique=True)
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    requested_at = models.DateTimeField(default=timezone.now)
    processed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.TextField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-requested_at"]
        verbose_name = "Seller Payout"
        verbose_name_plural = "Seller Payouts"
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="seller_payout_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"SellerPayout({self.id}, {self.status}, {self.amount} {self.currency.upper()})"

    @transition(field=status, source=PayoutState.PENDING, target=PayoutState.PROCESSING)
    def process(self):
        self.processed_at = timezone.now()

    @transition(field=status, source=PayoutState.PROCESSING, target=PayoutState.COMPLETED)
    def complete(self, stripe_payout_id: str | None = None):
        self.completed_at = timezone.now()
        if stripe_payout_id:
            self.stripe_payout_id = stripe_payout_id

    @transition(
        field=status,
        source=[PayoutState.PENDING, PayoutState.PROCESSING],
        target=PayoutState.FAILED,
    )
    def fail(self, reason: str | None = None):
        self.failed_at = timezone.now()
        if reason:
            self.failure_reason = reason

    @transition(field=status, source=PayoutState.PENDING, target=PayoutState.CANCELED)
    def cancel(self):
        pass
