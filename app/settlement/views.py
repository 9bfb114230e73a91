"""
DRF views for the settlement app.

Endpoints:
    GET  /api/v1/settlement/stores/{store_id}/balance/       - Balance summary
    GET  /api/v1/settlement/stores/{store_id}/transactions/  - Ledger entries
    POST /api/v1/settlement/stores/{store_id}/payouts/       - Request a payout

Security:
    - Store owner or staff only (IsStoreOwner)
    - The Stripe webhook lives in settlement.webhooks.views
"""

from __future__ import annotations

import logging

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.helpers import parse_uuid
from orders.models import Store
from orders.permissions import IsStoreOwner

from settlement.ledger import SellerBalanceTransaction, ledger
from settlement.serializers import (
    BalanceSummarySerializer,
    PayoutRequestSerializer,
    SellerBalanceTransactionSerializer,
    SellerPayoutSerializer,
)
from settlement.services import SellerPayoutService

logger = logging.getLogger(__name__)


# Payout failures that are the caller's fault rather than ours or Stripe's
PAYOUT_CLIENT_ERRORS = {
    "STORE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PAYOUT_INVALID": status.HTTP_400_BAD_REQUEST,
    "PAYOUT_BELOW_MINIMUM": status.HTTP_400_BAD_REQUEST,
    "PAYOUT_ACCOUNT_NOT_READY": status.HTTP_409_CONFLICT,
    "INSUFFICIENT_BALANCE": status.HTTP_409_CONFLICT,
    "INSUFFICIENT_FUNDS": status.HTTP_409_CONFLICT,
}


class LedgerTransactionPagination(PageNumberPagination):
    page_size = 50
    max_page_size = 200
    page_size_query_param = "page_size"


def get_store_or_404(store_id) -> Store:
    return get_object_or_404(Store, id=parse_uuid(store_id))


class StoreBalanceView(APIView):
    """
    Balance summary for a store.

    GET /api/v1/settlement/stores/{store_id}/balance/
    """

    permission_classes = [IsAuthenticated, IsStoreOwner]

    @extend_schema(
        operation_id="get_store_balance",
        summary="Get store balance",
        description=(
            "Ledger balances (available, pending) together with the Stripe "
            "connected balance and the amount that can be paid out now."
        ),
        responses={
            200: BalanceSummarySerializer,
            404: OpenApiResponse(description="Store not found"),
        },
        tags=["Settlement"],
    )
    def get(self, request, store_id):
        store = get_store_or_404(store_id)
        # Roll matured holds into available without waiting for the beat task
        ledger.refresh_balance(store.id)
        summary = ledger.get_balance_summary(store.id)
        return Response(BalanceSummarySerializer(summary).data)


class StoreTransactionListView(APIView):
    """
    Ledger entries for a store, newest first.

    GET /api/v1/settlement/stores/{store_id}/transactions/?page=N&type=T
    """

    permission_classes = [IsAuthenticated, IsStoreOwner]

    @extend_schema(
        operation_id="list_store_transactions",
        summary="List ledger transactions",
        responses={200: SellerBalanceTransactionSerializer(many=True)},
        tags=["Settlement"],
    )
    def get(self, request, store_id):
        store = get_store_or_404(store_id)
        queryset = SellerBalanceTransaction.objects.filter(store=store).order_by(
            "-created_at", "-id"
        )
        transaction_type = request.query_params.get("type")
        if transaction_type:
            queryset = queryset.filter(type=transaction_type)

        paginator = LedgerTransactionPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = SellerBalanceTransactionSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)


class StorePayoutView(APIView):
    """
    Request a payout of available funds.

    POST /api/v1/settlement/stores/{store_id}/payouts/

    Payload:
        amount: Decimal amount in the store's balance currency
    """

    permission_classes = [IsAuthenticated, IsStoreOwner]

    @extend_schema(
        operation_id="request_store_payout",
        summary="Request payout",
        request=PayoutRequestSerializer,
        responses={
            201: SellerPayoutSerializer,
            400: OpenApiResponse(description="Invalid amount or below minimum"),
            409: OpenApiResponse(description="Insufficient balance or account not ready"),
            502: OpenApiResponse(description="Stripe rejected or failed the payout"),
        },
        tags=["Settlement"],
    )
    def post(self, request, store_id):
        serializer = PayoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        store = get_store_or_404(store_id)
        result = SellerPayoutService.request_payout(
            store.id,
            serializer.validated_data["amount"],
            requested_by=request.user,
        )

        if not result.success:
            response_status = PAYOUT_CLIENT_ERRORS.get(
                result.error_code, status.HTTP_502_BAD_GATEWAY
            )
            return Response(
                result.to_response(),
                status=response_status,
            )

        return Response(
            SellerPayoutSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )
