"""
Settlement admin configuration.

This file imports admin configurations from the ledger submodule
and registers payment and webhook models with the Django admin.
"""

from django.contrib import admin, messages

from settlement.ledger.admin import (
    SellerBalanceAdmin,
    SellerBalanceTransactionAdmin,
    SellerPayoutAdmin,
    SellerPayoutSettingsAdmin,
)
from settlement.models import OrderPayment, WebhookEvent
from settlement.webhooks.processor import process_webhook_event

__all__ = [
    "SellerBalanceAdmin",
    "SellerBalanceTransactionAdmin",
    "SellerPayoutAdmin",
    "SellerPayoutSettingsAdmin",
    "OrderPaymentAdmin",
    "WebhookEventAdmin",
]


@admin.register(OrderPayment)
class OrderPaymentAdmin(admin.ModelAdmin):
    """
    Admin configuration for OrderPayment.

    State changes are made by webhook handlers through the service layer,
    so every field is read-only here.
    """

    list_display = [
        "id",
        "order",
        "amount",
        "currency",
        "state",
        "refunded_amount",
        "stripe_payment_intent_id",
        "created_at",
    ]
    list_filter = ["state", "transfer_status", "currency", "created_at"]
    search_fields = [
        "id",
        "order__id",
        "stripe_payment_intent_id",
        "stripe_checkout_session_id",
        "stripe_charge_id",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "order", "state", "transfer_status"),
            },
        ),
        (
            "Amounts",
            {
                "fields": (
                    "amount",
                    "currency",
                    "platform_fee_amount",
                    "processor_fee_amount",
                    "net_amount_to_store",
                    "refunded_amount",
                ),
            },
        ),
        (
            "Stripe",
            {
                "fields": (
                    "provider",
                    "stripe_payment_intent_id",
                    "stripe_checkout_session_id",
                    "stripe_charge_id",
                ),
            },
        ),
        (
            "Metadata",
            {
                "fields": ("metadata", "version"),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("captured_at", "voided_at", "refunded_at", "created_at", "updated_at"),
            },
        ),
    )

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Provides visibility into webhook processing status and a reprocess
    action for failed events. Payload and event details are immutable.
    """

    list_display = [
        "id",
        "stripe_event_id",
        "event_type",
        "status",
        "retry_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type", "created_at"]
    search_fields = ["id", "stripe_event_id", "event_type"]
    readonly_fields = [
        "id",
        "created_at",
        "updated_at",
        "stripe_event_id",
        "event_type",
        "payload",
        "status",
        "processed_at",
        "retry_count",
        "error_message",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    actions = ["reprocess_events"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "stripe_event_id", "event_type", "status"),
            },
        ),
        (
            "Processing",
            {
                "fields": ("processed_at", "retry_count"),
            },
        ),
        (
            "Error Info",
            {
                "fields": ("error_message",),
                "classes": ("collapse",),
            },
        ),
        (
            "Payload",
            {
                "fields": ("payload",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for webhook events (audit trail)."""
        return False

    def has_add_permission(self, request) -> bool:
        return False

    @admin.action(description="Reprocess selected events")
    def reprocess_events(self, request, queryset):
        processed = failed = skipped = 0
        for webhook_event in queryset.order_by("created_at"):
            if webhook_event.is_processed:
                skipped += 1
                continue
            try:
                result = process_webhook_event(webhook_event)
            except Exception:
                # Logged and marked failed by the processor
                failed += 1
                continue
            if result.success:
                processed += 1
            else:
                failed += 1

        level = messages.WARNING if failed else messages.SUCCESS
        self.message_user(
            request,
            f"Reprocessed {processed} event(s), {failed} failed, {skipped} already processed.",
            level=level,
        )
