"""
Pytest fixtures shared by all settlement tests.

Stripe is never called: tests patch StripeAdapter methods and feed them
the result dataclasses built by the make_* fixtures here.

Usage:
    def test_capture(held_payment):
        PaymentStateService.complete_payment(held_payment)
"""

from decimal import Decimal
from unittest.mock import patch

import pytest

from orders.tests.factories import OrderFactory, StoreFactory, UserFactory
from settlement.adapters import (
    BalanceAmount,
    BalanceResult,
    CheckoutSessionResult,
    PaymentIntentResult,
    PayoutResult,
    RefundResult,
)
from settlement.fees import calculate_fees
from settlement.tests.factories import OrderPaymentFactory


# =============================================================================
# Store and Order Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    return UserFactory()


@pytest.fixture
def store(db, user):
    return StoreFactory(owner=user)


@pytest.fixture
def order(db, store):
    """An open $100 order."""
    return OrderFactory(store=store, total_amount=Decimal("100.00"))


@pytest.fixture
def fees_100(settings):
    """Fees for $100 at 5% platform and 2.9% + 0.30 processor."""
    settings.PLATFORM_FEE_PERCENT = "5"
    settings.STRIPE_FEE_PERCENT = "2.9"
    settings.STRIPE_FEE_FIXED = "0.30"
    return calculate_fees(Decimal("100.00"))


# =============================================================================
# Payment Fixtures
# =============================================================================


@pytest.fixture
def held_payment(db, order):
    return OrderPaymentFactory(order=order, stripe_payment_intent_id="pi_test_held")


@pytest.fixture
def captured_payment(held_payment):
    from settlement.services import PaymentStateService

    return PaymentStateService.complete_payment(held_payment)


# =============================================================================
# Stripe Result Builders
# =============================================================================


@pytest.fixture
def make_intent():
    def _make(
        id="pi_test_123",
        status="succeeded",
        amount=10000,
        currency="usd",
        metadata=None,
    ):
        return PaymentIntentResult(
            id=id,
            status=status,
            amount=amount,
            currency=currency,
            latest_charge_id=f"ch_{id}",
            metadata=metadata or {},
        )

    return _make


@pytest.fixture
def make_session():
    def _make(id="cs_test_123", payment_intent_id="pi_test_123", metadata=None):
        return CheckoutSessionResult(
            id=id,
            payment_intent_id=payment_intent_id,
            amount_total=10000,
            currency="usd",
            payment_status="paid",
            metadata=metadata or {},
        )

    return _make


@pytest.fixture
def make_refund():
    def _make(id, amount, status="succeeded", payment_intent_id="pi_test_held", metadata=None):
        return RefundResult(
            id=id,
            amount=amount,
            currency="usd",
            status=status,
            payment_intent_id=payment_intent_id,
            metadata=metadata or {},
        )

    return _make


@pytest.fixture
def stripe_balance():
    """Patch the connected-account balance lookup; returns the mock."""
    with patch("settlement.ledger.services.StripeAdapter.retrieve_balance") as mock_balance:
        mock_balance.return_value = BalanceResult(
            available=[BalanceAmount(amount=1_000_000, currency="usd")],
            pending=[BalanceAmount(amount=0, currency="usd")],
        )
        yield mock_balance


@pytest.fixture
def mock_create_payout():
    with patch("settlement.services.payouts.StripeAdapter.create_payout") as mock_payout:
        mock_payout.return_value = PayoutResult(
            id="po_test_123",
            amount=5000,
            currency="usd",
            status="pending",
        )
        yield mock_payout
