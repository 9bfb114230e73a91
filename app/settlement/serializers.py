"""
Serializers for the settlement API.

- BalanceSummarySerializer: Read-only view of a BalanceSummary dataclass
- SellerBalanceTransactionSerializer: Ledger entry (read-only)
- PayoutRequestSerializer / SellerPayoutSerializer: Payout request and result
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from settlement.ledger import SellerBalanceTransaction, SellerPayout


class BalanceSummarySerializer(serializers.Serializer):
    store_id = serializers.UUIDField()
    currency = serializers.CharField()
    available_balance = serializers.DecimalField(max_digits=12, decimal_places=2)
    pending_balance = serializers.DecimalField(max_digits=12, decimal_places=2)
    current_balance = serializers.DecimalField(max_digits=12, decimal_places=2)
    available_for_payout = serializers.DecimalField(max_digits=12, decimal_places=2)
    amount_due = serializers.DecimalField(max_digits=12, decimal_places=2)
    reserved_fees_from_pending = serializers.DecimalField(max_digits=12, decimal_places=2)
    stripe_available = serializers.DecimalField(
        max_digits=12, decimal_places=2, allow_null=True
    )
    stripe_pending = serializers.DecimalField(
        max_digits=12, decimal_places=2, allow_null=True
    )
    last_payout_at = serializers.DateTimeField(allow_null=True)
    last_payout_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, allow_null=True
    )


class SellerBalanceTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = SellerBalanceTransaction
        fields = [
            "id",
            "type",
            "amount",
            "currency",
            "balance_before",
            "balance_after",
            "status",
            "available_at",
            "description",
            "order",
            "order_payment",
            "payout",
            "created_at",
        ]
        read_only_fields = fields


class PayoutRequestSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.01"),
    )


class SellerPayoutSerializer(serializers.ModelSerializer):
    class Meta:
        model = SellerPayout
        fields = [
            "id",
            "amount",
            "currency",
            "status",
            "stripe_payout_id",
            "requested_at",
            "processed_at",
            "completed_at",
            "failed_at",
            "failure_reason",
        ]
        read_only_fields = fields
