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


def order_details():
    return [
        ("customer_email", models.EmailField(blank=True, default="", max_length=254)),
        ("customer_first_name", models.CharField(blank=True, default="", max_length=100)),
        ("customer_last_name", models.CharField(blank=True, default="", max_length=100)),
        ("shipping_name", models.CharField(blank=True, default="", max_length=200)),
        ("shipping_phone", models.CharField(blank=True, default="", max_length=50)),
        ("shipping_address_line1", models.CharField(blank=True, default="", max_length=255)),
        ("shipping_address_line2", models.CharField(blank=True, default="", max_length=255)),
        ("shipping_city", models.CharField(blank=True, default="", max_length=100)),
        ("shipping_region", models.CharField(blank=True, default="", max_length=100)),
        ("shipping_postal_code", models.CharField(blank=True, default="", max_length=20)),
        ("shipping_country", models.CharField(blank=True, default="", max_length=2)),
        ("shipping_method", models.CharField(blank=True, default="", max_length=100)),
        ("billing_name", models.CharField(blank=True, default="", max_length=200)),
        ("billing_phone", models.CharField(blank=True, default="", max_length=50)),
        ("billing_address_line1", models.CharField(blank=True, default="", max_length=255)),
        ("billing_address_line2", models.CharField(blank=True, default="", max_length=255)),
        ("billing_city", models.CharField(blank=True, default="", max_length=100)),
        ("billing_region", models.CharField(blank=True, default="", max_length=100)),
        ("billing_postal_code", models.CharField(blank=True, default="", max_length=20)),
        ("billing_country", models.CharField(blank=True, default="", max_length=2)),
        ("currency", models.CharField(default="usd", max_length=3)),
        ("subtotal_amount", money()),
        ("discount_amount", money()),
        ("shipping_amount", money()),
        ("tax_amount", money()),
        ("total_amount", money()),
    ]


def line_item_details():
    return [
        ("product_id", models.UUIDField(blank=True, null=True)),
        ("variant_id", models.UUIDField(blank=True, db_index=True, null=True)),
        ("title", models.CharField(max_length=255)),
        ("sku", models.CharField(blank=True, default="", max_length=100)),
        ("quantity", models.PositiveIntegerField(default=1)),
        ("unit_price", money()),
        ("currency", models.CharField(default="usd", max_length=3)),
        ("line_subtotal", money()),
        ("line_total", money()),
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Store",
            fields=[
                ("id", uuid_pk()),
                *timestamps(),
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("currency", models.CharField(default="usd", max_length=3)),
                (
                    "stripe_account_id",
                    models.CharField(
                        blank=True,
                        help_text="Stripe Connect account ID (acct_xxx)",
                        max_length=255,
                        null=True,
                        unique=True,
                    ),
                ),
                ("stripe_charges_enabled", models.BooleanField(default=False)),
                ("stripe_payouts_enabled", models.BooleanField(default=False)),
                ("stripe_onboarding_complete", models.BooleanField(default=False)),
                (
                    "owner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stores",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", uuid_pk()),
                *order_details(),
                *timestamps(),
                (
                    "order_number",
                    models.PositiveIntegerField(
                        help_text="Sequential per store; shown to customers as #N"
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("open", "Open"),
                            ("draft", "Draft"),
                            ("archived", "Archived"),
                            ("canceled", "Canceled"),
                            ("completed", "Completed"),
                        ],
                        db_index=True,
                        default="open",
                        max_length=20,
                    ),
                ),
                (
                    "payment_status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("partially_refunded", "Partially Refunded"),
                            ("refunded", "Refunded"),
                            ("void", "Void"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "fulfillment_status",
                    models.CharField(
                        choices=[
                            ("unfulfilled", "Unfulfilled"),
                            ("partial", "Partially Fulfilled"),
                            ("fulfilled", "Fulfilled"),
                            ("canceled", "Canceled"),
                        ],
                        db_index=True,
                        default="unfulfilled",
                        max_length=20,
                    ),
                ),
                ("refunded_amount", money()),
                ("placed_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("fulfilled_at", models.DateTimeField(blank=True, null=True)),
                ("canceled_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("invoice_number", models.CharField(blank=True, max_length=50, null=True)),
                ("invoice_issued_at", models.DateTimeField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="orders.store",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["store", "status"], name="order_store_status_idx"),
                    models.Index(
                        fields=["store", "payment_status"], name="order_store_payment_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("store", "order_number"),
                        name="unique_order_number_per_store",
                    ),
                    models.UniqueConstraint(
                        fields=("store", "invoice_number"),
                        name="unique_invoice_number_per_store",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", uuid_pk()),
                *line_item_details(),
                *timestamps(),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.order",
                    ),
                ),
            ],
            options={"ordering": ["created_at"]},
        ),
        migrations.CreateModel(
            name="DraftOrder",
            fields=[
                ("id", uuid_pk()),
                *order_details(),
                *timestamps(),
                ("draft_number", models.PositiveIntegerField()),
                ("completed", models.BooleanField(db_index=True, default=False)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "converted_to_order",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="source_draft",
                        to="orders.order",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="draft_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="draft_orders",
                        to="orders.store",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("store", "draft_number"),
                        name="unique_draft_number_per_store",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DraftOrderItem",
            fields=[
                ("id", uuid_pk()),
                *line_item_details(),
                *timestamps(),
                (
                    "draft",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.draftorder",
                    ),
                ),
            ],
            options={"ordering": ["created_at"]},
        ),
        migrations.CreateModel(
            name="OrderEvent",
            fields=[
                ("id", uuid_pk()),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("system", "System"),
                            ("payment", "Payment"),
                            ("refund", "Refund"),
                            ("fulfillment", "Fulfillment"),
                            ("invoice", "Invoice"),
                            ("note", "Note"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "visibility",
                    models.CharField(
                        choices=[("internal", "Internal"), ("customer", "Customer")],
                        default="internal",
                        max_length=20,
                    ),
                ),
                ("message", models.TextField()),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="events",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["order", "type"], name="order_event_type_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InventoryLevel",
            fields=[
                ("id", uuid_pk()),
                *timestamps(),
                ("variant_id", models.UUIDField()),
                ("available", models.IntegerField(default=0)),
                ("committed", models.IntegerField(default=0)),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inventory_levels",
                        to="orders.store",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("store", "variant_id"),
                        name="unique_inventory_per_variant",
                    ),
                ],
            },
        ),
    ]
