"""
Tests for order API views.

Tests cover:
- Store owner / staff access
- Order detail
- Fulfillment updates
- Draft completion, including inventory conflicts
"""

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from orders.choices import FulfillmentStatus, OrderPaymentStatus
from orders.models import Order
from orders.tests.factories import (
    DraftOrderItemFactory,
    InventoryLevelFactory,
    UserFactory,
)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def owner_client(api_client, user):
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def stranger_client(db):
    client = APIClient()
    client.force_authenticate(user=UserFactory())
    return client


class TestOrderDetailView:
    def test_owner_can_view_order(self, owner_client, order):
        url = reverse("orders:order_detail", kwargs={"order_id": order.id})

        response = owner_client.get(url)

        assert response.status_code == 200
        assert response.data["id"] == str(order.id)
        assert response.data["payment_status"] == OrderPaymentStatus.PENDING
        assert response.data["items"] == []

    def test_staff_can_view_any_order(self, order):
        client = APIClient()
        client.force_authenticate(user=UserFactory(is_staff=True))

        response = client.get(reverse("orders:order_detail", kwargs={"order_id": order.id}))

        assert response.status_code == 200

    def test_other_user_is_forbidden(self, stranger_client, order):
        url = reverse("orders:order_detail", kwargs={"order_id": order.id})

        response = stranger_client.get(url)

        assert response.status_code == 403

    def test_anonymous_is_rejected(self, api_client, order):
        url = reverse("orders:order_detail", kwargs={"order_id": order.id})

        response = api_client.get(url)

        assert response.status_code == 401

    def test_unknown_order(self, owner_client):
        url = reverse("orders:order_detail", kwargs={"order_id": "not-a-uuid"})

        response = owner_client.get(url)

        assert response.status_code == 404


class TestOrderFulfillmentView:
    def test_updates_status(self, owner_client, order):
        url = reverse("orders:order_fulfillment", kwargs={"order_id": order.id})

        response = owner_client.post(url, {"fulfillment_status": "fulfilled"}, format="json")

        assert response.status_code == 200
        assert response.data["fulfillment_status"] == FulfillmentStatus.FULFILLED

    def test_rejects_unknown_status(self, owner_client, order):
        url = reverse("orders:order_fulfillment", kwargs={"order_id": order.id})

        response = owner_client.post(url, {"fulfillment_status": "lost"}, format="json")

        assert response.status_code == 400

    def test_other_user_is_forbidden(self, stranger_client, order):
        url = reverse("orders:order_fulfillment", kwargs={"order_id": order.id})

        response = stranger_client.post(
            url, {"fulfillment_status": "fulfilled"}, format="json"
        )

        assert response.status_code == 403
        assert Order.objects.get(id=order.id).fulfillment_status == FulfillmentStatus.UNFULFILLED


class TestDraftOrderCompleteView:
    def test_converts_draft(self, owner_client, draft_with_items):
        url = reverse("orders:draft_complete", kwargs={"draft_id": draft_with_items.id})

        response = owner_client.post(url, {"mark_as_paid": True}, format="json")

        assert response.status_code == 200
        assert response.data["already_completed"] is False
        order = Order.objects.get(id=response.data["order_id"])
        assert order.payment_status == OrderPaymentStatus.PAID

    def test_second_call_returns_same_order(self, owner_client, draft_with_items):
        url = reverse("orders:draft_complete", kwargs={"draft_id": draft_with_items.id})

        first = owner_client.post(url, {}, format="json")
        second = owner_client.post(url, {}, format="json")

        assert second.status_code == 200
        assert second.data["already_completed"] is True
        assert second.data["order_id"] == first.data["order_id"]

    def test_empty_draft_is_rejected(self, owner_client, draft):
        url = reverse("orders:draft_complete", kwargs={"draft_id": draft.id})

        response = owner_client.post(url, {}, format="json")

        assert response.status_code == 400
        assert response.data["error_code"] == "DRAFT_INVALID"

    def test_inventory_conflict(self, owner_client, store, draft):
        level = InventoryLevelFactory(store=store, available=0)
        DraftOrderItemFactory(draft=draft, variant_id=level.variant_id, quantity=1)
        url = reverse("orders:draft_complete", kwargs={"draft_id": draft.id})

        response = owner_client.post(url, {}, format="json")

        assert response.status_code == 409
        assert response.data["error_code"] == "INVENTORY_RESERVATION_FAILED"
        assert not Order.objects.exists()
