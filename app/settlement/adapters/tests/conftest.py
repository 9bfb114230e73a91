"""
Pytest fixtures for Stripe adapter tests.

Sections:
    - Mock Stripe Objects
    - Mock Stripe Error Fixtures
    - Mock Stripe Client Fixtures
"""

from dataclasses import dataclass
from typing import Any
from unittest.mock import patch

import pytest
import stripe


# =============================================================================
# Mock Stripe Objects
# =============================================================================


@dataclass
class MockStripeObject:
    """Mock Stripe API object with attribute, get() and to_dict() access."""

    data: dict[str, Any]

    def __getattr__(self, name: str) -> Any:
        if name == "data":
            return self.__dict__["data"]
        return self.data.get(name)

    def get(self, name: str, default: Any = None) -> Any:
        return self.data.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        return self.data


@dataclass
class MockStripeList:
    items: list[MockStripeObject]

    def auto_paging_iter(self):
        return iter(self.items)


@pytest.fixture
def mock_session():
    def _create(
        id: str = "cs_test_123",
        payment_intent: Any = "pi_test_123",
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "checkout.session",
                "payment_intent": payment_intent,
                "amount_total": 10000,
                "currency": "usd",
                "payment_status": "paid",
                "metadata": metadata or {},
            }
        )

    return _create


@pytest.fixture
def mock_payment_intent():
    def _create(
        id: str = "pi_test_123",
        status: str = "succeeded",
        amount: int = 10000,
        latest_charge: Any = "ch_test_123",
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "payment_intent",
                "status": status,
                "amount": amount,
                "currency": "usd",
                "latest_charge": latest_charge,
                "metadata": metadata or {},
            }
        )

    return _create


@pytest.fixture
def mock_refund():
    def _create(
        id: str = "re_test_123",
        amount: int = 3000,
        status: str = "succeeded",
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "refund",
                "amount": amount,
                "currency": "usd",
                "status": status,
                "payment_intent": "pi_test_123",
                "reason": "requested_by_customer",
                "metadata": metadata or {},
            }
        )

    return _create


@pytest.fixture
def mock_payout():
    return MockStripeObject(
        {
            "id": "po_test_123",
            "object": "payout",
            "amount": 5000,
            "currency": "usd",
            "status": "pending",
            "arrival_date": 1767225600,
        }
    )


# =============================================================================
# Mock Stripe Error Fixtures
# =============================================================================


@pytest.fixture
def invalid_request_error():
    def _create(
        message: str = "No such checkout session: cs_missing",
        param: str | None = "id",
        code: str = "resource_missing",
    ) -> stripe.InvalidRequestError:
        return stripe.InvalidRequestError(message=message, param=param, code=code)

    return _create


@pytest.fixture
def signature_verification_error():
    return stripe.SignatureVerificationError(
        message="Unable to verify webhook signature.",
        sig_header="bad_signature",
    )


# =============================================================================
# Mock Stripe Client Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def mock_stripe_http_client():
    with patch("stripe.RequestsClient") as mock:
        yield mock


@pytest.fixture
def mock_stripe_session():
    with patch("stripe.checkout.Session") as mock:
        yield mock


@pytest.fixture
def mock_stripe_payment_intent():
    with patch("stripe.PaymentIntent") as mock:
        yield mock


@pytest.fixture
def mock_stripe_refund():
    with patch("stripe.Refund") as mock:
        yield mock


@pytest.fixture
def mock_stripe_payout():
    with patch("stripe.Payout") as mock:
        yield mock


@pytest.fixture
def mock_stripe_balance():
    with patch("stripe.Balance") as mock:
        yield mock


@pytest.fixture
def mock_stripe_webhook():
    with patch("stripe.Webhook") as mock:
        mock.construct_event.return_value = MockStripeObject(
            {
                "id": "evt_test_123",
                "type": "payment_intent.succeeded",
                "data": {"object": {"id": "pi_test_123", "object": "payment_intent"}},
            }
        )
        yield mock
