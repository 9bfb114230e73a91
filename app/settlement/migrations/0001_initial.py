import decimal
import uuid

import django.db.models.deletion
import django.utils.timezone
import django_fsm
from django.conf import settings
from django.db import migrations, models


def money(**kwargs):
    kwargs.setdefault("default", decimal.Decimal("0.00"))
    return models.DecimalField(decimal_places=2, max_digits=12, **kwargs)


def uuid_pk():
    return models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
        primary_key=True,
        serialize=False,
    )


def timestamps():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
    ]


PAYMENT_STATES = [
    ("held", "Held"),
    ("completed", "Completed"),
    ("void", "Void"),
    ("partially_refunded", "Partially Refunded"),
    ("refunded", "Refunded"),
]

PAYOUT_STATES = [
    ("pending", "Pending"),
    ("processing", "Processing"),
    ("completed", "Completed"),
    ("failed", "Failed"),
    ("canceled", "Canceled"),
]

TRANSACTION_TYPES = [
    ("order_payment", "Order Payment"),
    ("platform_fee", "Platform Fee"),
    ("stripe_fee", "Stripe Fee"),
    ("shipping_label", "Shipping Label"),
    ("refund", "Refund"),
    ("dispute", "Dispute"),
    ("payout", "Payout"),
    ("adjustment", "Adjustment"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("orders", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="OrderPayment",
            fields=[
                ("id", uuid_pk()),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Version for optimistic locking - incremented on each save",
                    ),
                ),
                *timestamps(),
                ("amount", money(help_text="Amount applied to the order (major units)")),
                ("currency", models.CharField(default="usd", max_length=3)),
                ("platform_fee_amount", money()),
                ("processor_fee_amount", money()),
                ("net_amount_to_store", money()),
                ("refunded_amount", money()),
                ("provider", models.CharField(default="stripe", max_length=20)),
                (
                    "stripe_payment_intent_id",
                    models.CharField(
                        db_index=True,
                        help_text="Stripe PaymentIntent ID (pi_xxx)",
                        max_length=255,
                    ),
                ),
                (
                    "stripe_checkout_session_id",
                    models.CharField(blank=True, db_index=True, max_length=255, null=True),
                ),
                ("stripe_charge_id", models.CharField(blank=True, max_length=255, null=True)),
                (
                    "state",
                    django_fsm.FSMField(
                        choices=PAYMENT_STATES,
                        db_index=True,
                        default="held",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "transfer_status",
                    models.CharField(
                        choices=[
                            ("held", "Held"),
                            ("transferred", "Transferred"),
                            ("pending_payout", "Pending Payout"),
                        ],
                        default="held",
                        max_length=20,
                    ),
                ),
                ("captured_at", models.DateTimeField(blank=True, null=True)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                (
                    "refunded_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the first refund was applied (full or partial)",
                        null=True,
                    ),
                ),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "verbose_name": "Order Payment",
                "verbose_name_plural": "Order Payments",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["stripe_payment_intent_id", "state"],
                        name="payment_intent_state_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("order", "stripe_payment_intent_id"),
                        name="unique_payment_per_order_intent",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("amount__gte", 0)),
                        name="order_payment_amount_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                ("id", uuid_pk()),
                *timestamps(),
                (
                    "stripe_event_id",
                    models.CharField(
                        help_text="Stripe Event ID (evt_xxx)", max_length=255, unique=True
                    ),
                ),
                ("event_type", models.CharField(db_index=True, max_length=100)),
                ("payload", models.JSONField(help_text="Full webhook payload from Stripe")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("error_message", models.TextField(blank=True, null=True)),
                (
                    "retry_count",
                    models.PositiveSmallIntegerField(
                        default=0, help_text="Number of processing attempts"
                    ),
                ),
            ],
            options={
                "verbose_name": "Webhook Event",
                "verbose_name_plural": "Webhook Events",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "created_at"], name="webhook_status_created_idx"
                    ),
                    models.Index(
                        fields=["event_type", "created_at"], name="webhook_type_created_idx"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SellerBalance",
            fields=[
                ("id", uuid_pk()),
                *timestamps(),
                ("available_balance", money(help_text="Funds past their hold period")),
                ("pending_balance", money(help_text="Funds still inside the hold period")),
                (
                    "currency",
                    models.CharField(
                        default="usd",
                        help_text="Set by the first transaction recorded for the store",
                        max_length=3,
                    ),
                ),
                ("last_payout_at", models.DateTimeField(blank=True, null=True)),
                ("last_payout_amount", money(blank=True, default=None, null=True)),
                ("last_recomputed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "store",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="balance",
                        to="orders.store",
                    ),
                ),
            ],
            options={
                "verbose_name": "Seller Balance",
                "verbose_name_plural": "Seller Balances",
            },
        ),
        migrations.CreateModel(
            name="SellerPayoutSettings",
            fields=[
                ("id", uuid_pk()),
                *timestamps(),
                ("method", models.CharField(default="stripe", max_length=20)),
                (
                    "schedule",
                    models.CharField(
                        choices=[
                            ("manual", "Manual"),
                            ("daily", "Daily"),
                            ("weekly", "Weekly"),
                            ("monthly", "Monthly"),
                        ],
                        default="manual",
                        max_length=20,
                    ),
                ),
                ("minimum_amount", money(default=decimal.Decimal("20.00"))),
                (
                    "hold_period_days",
                    models.PositiveSmallIntegerField(
                        default=7,
                        help_text="Days an order payment stays pending before it can be paid out",
                    ),
                ),
                (
                    "store",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payout_settings",
                        to="orders.store",
                    ),
                ),
            ],
            options={
                "verbose_name": "Seller Payout Settings",
                "verbose_name_plural": "Seller Payout Settings",
            },
        ),
        migrations.CreateModel(
            name="SellerPayout",
            fields=[
                ("id", uuid_pk()),
                *timestamps(),
                ("amount", money()),
                ("currency", models.CharField(default="usd", max_length=3)),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=PAYOUT_STATES,
                        db_index=True,
                        default="pending",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "stripe_payout_id",
                    models.CharField(blank=True, max_length=255, null=True, unique=True),
                ),
                ("requested_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("failed_at", models.DateTimeField(blank=True, null=True)),
                ("failure_reason", models.TextField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "requested_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payouts",
                        to="orders.store",
                    ),
                ),
            ],
            options={
                "verbose_name": "Seller Payout",
                "verbose_name_plural": "Seller Payouts",
                "ordering": ["-requested_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="seller_payout_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SellerBalanceTransaction",
            fields=[
                ("id", uuid_pk()),
                ("type", models.CharField(choices=TRANSACTION_TYPES, max_length=20)),
                (
                    "amount",
                    money(help_text="Signed amount: credits positive, debits negative"),
                ),
                ("currency", models.CharField(default="usd", max_length=3)),
                ("balance_before", money()),
                ("balance_after", money()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("available", "Available"),
                            ("paid", "Paid"),
                        ],
                        default="available",
                        max_length=20,
                    ),
                ),
                ("available_at", models.DateTimeField(db_index=True)),
                ("description", models.TextField(blank=True, default="")),
                ("idempotency_key", models.CharField(max_length=255, unique=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="balance_transactions",
                        to="orders.order",
                    ),
                ),
                (
                    "order_payment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="balance_transactions",
                        to="settlement.orderpayment",
                    ),
                ),
                (
                    "payout",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="balance_transactions",
                        to="settlement.sellerpayout",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="balance_transactions",
                        to="orders.store",
                    ),
                ),
            ],
            options={
                "verbose_name": "Seller Balance Transaction",
                "verbose_name_plural": "Seller Balance Transactions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["store", "available_at"], name="ledger_store_available_idx"
                    ),
                    models.Index(fields=["store", "type"], name="ledger_store_type_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount", 0), _negated=True),
                        name="seller_balance_transaction_amount_non_zero",
                    ),
                ],
            },
        ),
    ]
