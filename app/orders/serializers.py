"""
Serializers for the orders API.

Read serializers expose orders and their timeline; the write serializers
only validate the small payloads the order actions accept.
"""

from __future__ import annotations

from rest_framework import serializers

from orders.choices import FulfillmentStatus
from orders.models import Order, OrderEvent, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "variant_id",
            "title",
            "sku",
            "quantity",
            "unit_price",
            "line_total",
        ]
        read_only_fields = fields


class OrderEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderEvent
        fields = ["id", "type", "visibility", "message", "metadata", "created_at"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    events = OrderEventSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "store",
            "order_number",
            "status",
            "payment_status",
            "fulfillment_status",
            "currency",
            "subtotal_amount",
            "discount_amount",
            "shipping_amount",
            "tax_amount",
            "total_amount",
            "refunded_amount",
            "customer_email",
            "placed_at",
            "paid_at",
            "fulfilled_at",
            "completed_at",
            "invoice_number",
            "items",
            "events",
        ]
        read_only_fields = fields


class DraftCompleteSerializer(serializers.Serializer):
    mark_as_paid = serializers.BooleanField(default=False)


class DraftConversionSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    order_number = serializers.IntegerField()
    already_completed = serializers.BooleanField()


class FulfillmentUpdateSerializer(serializers.Serializer):
    fulfillment_status = serializers.ChoiceField(choices=FulfillmentStatus.choices)
