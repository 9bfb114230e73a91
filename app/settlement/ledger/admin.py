"""
Django admin configuration for seller ledger models.

Ledger transactions are read-only here: corrections are made with a new
adjustment entry through SellerLedgerService, never by editing rows.
"""

from django.contrib import admin

from .models import (
    SellerBalance,
    SellerBalanceTransaction,
    SellerPayout,
    SellerPayoutSettings,
)


@admin.register(SellerBalance)
class SellerBalanceAdmin(admin.ModelAdmin):
    list_display = [
        "store",
        "available_balance",
        "pending_balance",
        "currency",
        "last_payout_at",
        "last_recomputed_at",
    ]
    list_filter = ["currency"]
    search_fields = ["store__name", "store__id"]
    readonly_fields = [
        "id",
        "store",
        "available_balance",
        "pending_balance",
        "currency",
        "last_payout_at",
        "last_payout_amount",
        "last_recomputed_at",
        "created_at",
        "updated_at",
    ]

    def has_add_permission(self, request) -> bool:
        """Balances are created by the ledger service on first use."""
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(SellerBalanceTransaction)
class SellerBalanceTransactionAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "created_at",
        "store",
        "type",
        "amount",
        "currency",
        "status",
        "available_at",
    ]
    list_filter = ["type", "status", "currency", "created_at"]
    search_fields = ["id", "idempotency_key", "description", "store__name"]
    readonly_fields = [
        "id",
        "created_at",
        "store",
        "type",
        "amount",
        "currency",
        "balance_before",
        "balance_after",
        "order",
        "order_payment",
        "payout",
        "status",
        "available_at",
        "description",
        "idempotency_key",
        "metadata",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            "Entry Details",
            {"fields": ("id", "store", "type", "amount", "currency", "created_at")},
        ),
        (
            "Balance",
            {"fields": ("balance_before", "balance_after", "status", "available_at")},
        ),
        (
            "Reference",
            {"fields": ("order", "order_payment", "payout", "idempotency_key")},
        ),
        (
            "Additional Info",
            {"fields": ("description", "metadata")},
        ),
    )

    def has_delete_permission(self, request, obj=None) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_add_permission(self, request) -> bool:
        return False


@admin.register(SellerPayoutSettings)
class SellerPayoutSettingsAdmin(admin.ModelAdmin):
    list_display = [
        "store",
        "schedule",
        "next_payout_at",
        "minimum_amount",
        "hold_period_days",
    ]
    list_filter = ["schedule"]
    search_fields = ["store__name"]


@admin.register(SellerPayout)
class SellerPayoutAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "store",
        "amount",
        "currency",
        "status",
        "stripe_payout_id",
        "requested_at",
        "completed_at",
    ]
    list_filter = ["status", "currency"]
    search_fields = ["id", "stripe_payout_id", "store__name"]
    readonly_fields = [
        "id",
        "store",
        "amount",
        "currency",
        "status",
        "stripe_payout_id",
        "requested_by",
        "requested_at",
        "processed_at",
        "completed_at",
        "failed_at",
        "failure_reason",
        "metadata",
    ]
    ordering = ["-requested_at"]

    def has_add_permission(self, request) -> bool:
        """Payouts are requested through SellerPayoutService."""
        return False
