"""
Tests for settlement API views.

Tests cover:
- Balance summary
- Ledger transaction listing with type filter and pagination
- Payout requests and error status mapping
- Store owner / staff access
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.urls import reverse
from freezegun import freeze_time
from rest_framework.test import APIClient

from orders.tests.factories import UserFactory
from settlement.exceptions import StripeAPIUnavailableError
from settlement.ledger import RecordTransactionParams, TransactionType, ledger
from settlement.tests.factories import SellerPayoutSettingsFactory


@pytest.fixture
def owner_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def stranger_client(db):
    client = APIClient()
    client.force_authenticate(user=UserFactory())
    return client


@pytest.fixture
def staff_client(db):
    client = APIClient()
    client.force_authenticate(user=UserFactory(is_staff=True))
    return client


@pytest.fixture
def funded_store(store):
    SellerPayoutSettingsFactory(store=store, hold_period_days=0)
    ledger.record_transaction(
        RecordTransactionParams(
            store_id=store.id,
            type=TransactionType.ORDER_PAYMENT,
            amount=Decimal("100.00"),
            idempotency_key="order_payment:1",
        )
    )
    ledger.record_transaction(
        RecordTransactionParams(
            store_id=store.id,
            type=TransactionType.PLATFORM_FEE,
            amount=Decimal("5.00"),
            idempotency_key="platform_fee:1",
        )
    )
    return store


def url(name, store):
    return reverse(f"settlement:{name}", kwargs={"store_id": str(store.id)})


class TestStoreBalanceView:
    def test_owner_sees_balance(self, owner_client, funded_store, stripe_balance):
        response = owner_client.get(url("store_balance", funded_store))

        assert response.status_code == 200
        assert response.data["available_balance"] == "95.00"
        assert response.data["pending_balance"] == "0.00"
        assert response.data["available_for_payout"] == "95.00"
        assert response.data["currency"] == "usd"

    def test_matured_hold_shows_as_available(self, owner_client, store, stripe_balance):
        with freeze_time("2026-05-01 12:00:00") as frozen:
            SellerPayoutSettingsFactory(store=store, hold_period_days=7)
            ledger.record_transaction(
                RecordTransactionParams(
                    store_id=store.id,
                    type=TransactionType.ORDER_PAYMENT,
                    amount=Decimal("100.00"),
                    idempotency_key="order_payment:matured",
                )
            )
            frozen.tick(timedelta(days=8))

            response = owner_client.get(url("store_balance", store))

        assert response.status_code == 200
        assert response.data["available_balance"] == "100.00"
        assert response.data["pending_balance"] == "0.00"

    def test_stranger_is_forbidden(self, stranger_client, store):
        response = stranger_client.get(url("store_balance", store))

        assert response.status_code == 403

    def test_anonymous_is_rejected(self, store):
        response = APIClient().get(url("store_balance", store))

        assert response.status_code == 401

    def test_staff_unknown_store(self, staff_client):
        response = staff_client.get(
            reverse(
                "settlement:store_balance",
                kwargs={"store_id": "0b7d6a52-5f0e-4d4a-9f57-3e3fcb0c9d11"},
            )
        )

        assert response.status_code == 404


class TestStoreTransactionListView:
    def test_lists_entries(self, owner_client, funded_store):
        response = owner_client.get(url("store_transactions", funded_store))

        assert response.status_code == 200
        assert response.data["count"] == 2
        assert {entry["type"] for entry in response.data["results"]} == {
            "order_payment",
            "platform_fee",
        }

    def test_filter_by_type(self, owner_client, funded_store):
        response = owner_client.get(
            url("store_transactions", funded_store), {"type": "platform_fee"}
        )

        assert response.data["count"] == 1
        assert response.data["results"][0]["amount"] == "-5.00"

    def test_pagination(self, owner_client, funded_store):
        response = owner_client.get(url("store_transactions", funded_store), {"page_size": 1})

        assert response.data["count"] == 2
        assert len(response.data["results"]) == 1
        assert response.data["next"] is not None

    def test_stranger_is_forbidden(self, stranger_client, funded_store):
        response = stranger_client.get(url("store_transactions", funded_store))

        assert response.status_code == 403


class TestStorePayoutView:
    def test_creates_payout(self, owner_client, funded_store, stripe_balance, mock_create_payout):
        response = owner_client.post(
            url("store_payouts", funded_store), {"amount": "50.00"}, format="json"
        )

        assert response.status_code == 201
        assert response.data["status"] == "completed"
        assert response.data["stripe_payout_id"] == "po_test_123"
        assert response.data["amount"] == "50.00"

    @pytest.mark.parametrize("amount", ["", "0", "abc"])
    def test_invalid_amount(self, owner_client, funded_store, amount):
        response = owner_client.post(
            url("store_payouts", funded_store), {"amount": amount}, format="json"
        )

        assert response.status_code == 400

    def test_below_minimum(self, owner_client, funded_store):
        response = owner_client.post(
            url("store_payouts", funded_store), {"amount": "5.00"}, format="json"
        )

        assert response.status_code == 400
        assert response.data["error_code"] == "PAYOUT_BELOW_MINIMUM"

    def test_insufficient_balance(
        self, owner_client, funded_store, stripe_balance, mock_create_payout
    ):
        response = owner_client.post(
            url("store_payouts", funded_store), {"amount": "500.00"}, format="json"
        )

        assert response.status_code == 409
        assert response.data["error_code"] == "INSUFFICIENT_BALANCE"
        assert response.data["details"]["required"] == "500.00"
        assert response.data["details"]["available"] == "95.00"

    def test_stripe_failure(self, owner_client, funded_store, stripe_balance, mock_create_payout):
        mock_create_payout.side_effect = StripeAPIUnavailableError("Stripe service error")

        response = owner_client.post(
            url("store_payouts", funded_store), {"amount": "50.00"}, format="json"
        )

        assert response.status_code == 502
        assert response.data["error_code"] == "STRIPE_UNAVAILABLE"

    def test_stranger_is_forbidden(self, stranger_client, funded_store):
        response = stranger_client.post(
            url("store_payouts", funded_store), {"amount": "50.00"}, format="json"
        )

        assert response.status_code == 403
