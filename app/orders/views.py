"""
DRF views for the orders app.

Endpoints:
    GET  /api/v1/orders/{order_id}/                 - Order detail
    POST /api/v1/orders/{order_id}/fulfillment/     - Update fulfillment status
    POST /api/v1/orders/drafts/{draft_id}/complete/ - Convert a draft to an order

Security:
    - Store owner or staff only (IsStoreOwner, checked against the loaded
      order or draft)
"""

from __future__ import annotations

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.helpers import parse_uuid
from orders.exceptions import InventoryReservationError
from orders.models import DraftOrder, Order
from orders.permissions import IsStoreOwner
from orders.serializers import (
    DraftCompleteSerializer,
    DraftConversionSerializer,
    FulfillmentUpdateSerializer,
    OrderSerializer,
)
from orders.services import DraftOrderService, OrderStatusService


class OrderDetailView(APIView):
    permission_classes = [IsAuthenticated, IsStoreOwner]

    @extend_schema(
        operation_id="get_order",
        summary="Get order",
        responses={200: OrderSerializer, 404: OpenApiResponse(description="Order not found")},
        tags=["Orders"],
    )
    def get(self, request, order_id):
        order = get_object_or_404(
            Order.objects.select_related("store").prefetch_related("items", "events"),
            id=parse_uuid(order_id),
        )
        self.check_object_permissions(request, order)
        return Response(OrderSerializer(order).data)


class OrderFulfillmentView(APIView):
    """
    Update an order's fulfillment status.

    POST /api/v1/orders/{order_id}/fulfillment/

    Payload:
        fulfillment_status: "unfulfilled" | "partial" | "fulfilled" | "canceled"

    Completing fulfillment on a paid order also completes the order.
    """

    permission_classes = [IsAuthenticated, IsStoreOwner]

    @extend_schema(
        operation_id="update_order_fulfillment",
        summary="Update fulfillment status",
        request=FulfillmentUpdateSerializer,
        responses={
            200: OrderSerializer,
            400: OpenApiResponse(description="Invalid fulfillment status"),
            404: OpenApiResponse(description="Order not found"),
        },
        tags=["Orders"],
    )
    def post(self, request, order_id):
        order = get_object_or_404(Order.objects.select_related("store"), id=parse_uuid(order_id))
        self.check_object_permissions(request, order)

        serializer = FulfillmentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = OrderStatusService.update_fulfillment_status(
            order.id,
            serializer.validated_data["fulfillment_status"],
            created_by=request.user,
        )
        if not result.success:
            return Response(
                result.to_response(),
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(OrderSerializer(result.data).data)


class DraftOrderCompleteView(APIView):
    """
    Convert a draft order into an order.

    POST /api/v1/orders/drafts/{draft_id}/complete/

    Payload:
        mark_as_paid: Mark the order paid (offline payment), default false

    Completing an already converted draft returns the existing order.
    """

    permission_classes = [IsAuthenticated, IsStoreOwner]

    @extend_schema(
        operation_id="complete_draft_order",
        summary="Complete draft order",
        request=DraftCompleteSerializer,
        responses={
            200: DraftConversionSerializer,
            400: OpenApiResponse(description="Draft cannot be converted"),
            404: OpenApiResponse(description="Draft not found"),
            409: OpenApiResponse(description="Inventory could not be reserved"),
        },
        tags=["Orders"],
    )
    def post(self, request, draft_id):
        draft = get_object_or_404(
            DraftOrder.objects.select_related("store"), id=parse_uuid(draft_id)
        )
        self.check_object_permissions(request, draft)

        serializer = DraftCompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = DraftOrderService.complete_draft_order(
                draft.id,
                mark_as_paid=serializer.validated_data["mark_as_paid"],
                created_by=request.user,
            )
        except InventoryReservationError as e:
            return Response(e.to_dict(), status=status.HTTP_409_CONFLICT)

        if not result.success:
            return Response(
                result.to_response(),
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(DraftConversionSerializer(result.data).data)
