"""
Orders admin configuration.

Orders and drafts are browsable here. Payment status is derived from
settlement payments, so it is read-only; the timeline is append-only.
"""

from django.contrib import admin

from orders.models import (
    DraftOrder,
    DraftOrderItem,
    InventoryLevel,
    Order,
    OrderEvent,
    OrderItem,
    OrderRefund,
    Store,
)


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = [
        "name",
        "owner",
        "stripe_account_id",
        "stripe_charges_enabled",
        "stripe_payouts_enabled",
        "created_at",
    ]
    list_filter = ["stripe_charges_enabled", "stripe_payouts_enabled"]
    search_fields = ["id", "name", "stripe_account_id", "owner__email"]
    readonly_fields = ["id", "created_at", "updated_at"]


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ["variant_id", "title", "sku", "quantity", "unit_price", "line_total"]
    fields = readonly_fields
    can_delete = False

    def has_add_permission(self, request, obj=None) -> bool:
        return False


class OrderEventInline(admin.TabularInline):
    model = OrderEvent
    extra = 0
    readonly_fields = ["type", "visibility", "message", "created_by", "created_at"]
    fields = readonly_fields
    can_delete = False

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        "order_number",
        "store",
        "status",
        "payment_status",
        "fulfillment_status",
        "total_amount",
        "currency",
        "placed_at",
    ]
    list_filter = ["status", "payment_status", "fulfillment_status", "currency"]
    search_fields = ["id", "customer_email", "invoice_number", "store__name"]
    readonly_fields = [
        "id",
        "order_number",
        "payment_status",
        "refunded_amount",
        "paid_at",
        "completed_at",
        "invoice_number",
        "invoice_issued_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "placed_at"
    inlines = [OrderItemInline, OrderEventInline]


class DraftOrderItemInline(admin.TabularInline):
    model = DraftOrderItem
    extra = 0


@admin.register(DraftOrder)
class DraftOrderAdmin(admin.ModelAdmin):
    list_display = ["draft_number", "store", "customer_email", "total_amount", "completed"]
    list_filter = ["completed"]
    search_fields = ["id", "customer_email", "store__name"]
    readonly_fields = ["id", "completed", "completed_at", "converted_to_order", "created_at"]
    inlines = [DraftOrderItemInline]

    def has_delete_permission(self, request, obj=None) -> bool:
        if obj is not None and obj.completed:
            return False
        return super().has_delete_permission(request, obj)


@admin.register(OrderRefund)
class OrderRefundAdmin(admin.ModelAdmin):
    list_display = ["stripe_refund_id", "order", "order_payment", "amount", "currency", "status"]
    list_filter = ["status", "currency"]
    search_fields = ["stripe_refund_id", "order__id"]

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request) -> bool:
        return False


@admin.register(InventoryLevel)
class InventoryLevelAdmin(admin.ModelAdmin):
    list_display = ["variant_id", "store", "available", "committed"]
    search_fields = ["variant_id", "store__name"]
