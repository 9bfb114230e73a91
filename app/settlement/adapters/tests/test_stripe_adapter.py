"""
Tests for the Stripe adapter.

Tests cover:
- Idempotency key generation
- Retrieval and result mapping
- Error translation for each exception type
- Webhook signature verification
- Configuration from settings
"""

import uuid

import pytest
import stripe
from django.test import override_settings

from settlement.adapters import IdempotencyKeyGenerator, StripeAdapter
from settlement.adapters.tests.conftest import MockStripeList, MockStripeObject
from settlement.exceptions import (
    StripeAPIUnavailableError,
    StripeInsufficientFundsError,
    StripeInvalidAccountError,
    StripeInvalidRequestError,
    StripeRateLimitError,
    StripeTimeoutError,
)


# =============================================================================
# IdempotencyKeyGenerator Tests
# =============================================================================


class TestIdempotencyKeyGenerator:
    def test_key_format(self):
        entity_id = uuid.uuid4()

        key = IdempotencyKeyGenerator.generate("payout", entity_id)

        operation, entity, attempt, short_hash = key.split(":")
        assert operation == "payout"
        assert entity == str(entity_id)
        assert attempt == "1"
        assert len(short_hash) == 8

    def test_same_inputs_produce_same_key(self):
        assert IdempotencyKeyGenerator.generate("payout", "p1") == (
            IdempotencyKeyGenerator.generate("payout", "p1")
        )

    def test_attempt_changes_key(self):
        assert IdempotencyKeyGenerator.generate("payout", "p1", attempt=1) != (
            IdempotencyKeyGenerator.generate("payout", "p1", attempt=2)
        )


# =============================================================================
# Retrieval Tests
# =============================================================================


class TestRetrieval:
    def test_retrieve_checkout_session(self, mock_stripe_session, mock_session):
        mock_stripe_session.retrieve.return_value = mock_session(
            payment_intent={"id": "pi_expanded"}, metadata={"draftId": "d1"}
        )

        result = StripeAdapter.retrieve_checkout_session("cs_test_123")

        assert result.id == "cs_test_123"
        assert result.payment_intent_id == "pi_expanded"
        assert result.amount_total == 10000
        assert result.metadata == {"draftId": "d1"}
        mock_stripe_session.retrieve.assert_called_once_with("cs_test_123")

    def test_retrieve_payment_intent(self, mock_stripe_payment_intent, mock_payment_intent):
        mock_stripe_payment_intent.retrieve.return_value = mock_payment_intent(
            metadata={"orderId": "o1"}
        )

        result = StripeAdapter.retrieve_payment_intent("pi_test_123")

        assert result.status == "succeeded"
        assert result.amount == 10000
        assert result.latest_charge_id == "ch_test_123"
        assert result.metadata == {"orderId": "o1"}

    def test_list_refunds_reads_every_page(self, mock_stripe_refund, mock_refund):
        mock_stripe_refund.list.return_value = MockStripeList(
            [mock_refund("re_1"), mock_refund("re_2", metadata={"orderId": "o1"})]
        )

        results = StripeAdapter.list_refunds("pi_test_123")

        assert [r.id for r in results] == ["re_1", "re_2"]
        assert results[0].payment_intent_id == "pi_test_123"
        assert results[0].reason == "requested_by_customer"
        assert results[1].metadata == {"orderId": "o1"}
        mock_stripe_refund.list.assert_called_once_with(payment_intent="pi_test_123", limit=100)

    def test_retrieve_balance(self, mock_stripe_balance):
        mock_stripe_balance.retrieve.return_value = MockStripeObject(
            {
                "available": [MockStripeObject({"amount": 1200, "currency": "usd"})],
                "pending": [MockStripeObject({"amount": 300, "currency": "usd"})],
            }
        )

        result = StripeAdapter.retrieve_balance("acct_1")

        assert result.available[0].amount == 1200
        assert result.pending[0].amount == 300
        mock_stripe_balance.retrieve.assert_called_once_with(stripe_account="acct_1")

    def test_create_payout(self, mock_stripe_payout, mock_payout):
        mock_stripe_payout.create.return_value = mock_payout

        result = StripeAdapter.create_payout(
            stripe_account="acct_1",
            amount=5000,
            currency="usd",
            idempotency_key="payout:p1:1:abcd1234",
            metadata={"seller_payout_id": "p1"},
        )

        assert result.id == "po_test_123"
        assert result.status == "pending"
        mock_stripe_payout.create.assert_called_once_with(
            amount=5000,
            currency="usd",
            metadata={"seller_payout_id": "p1"},
            stripe_account="acct_1",
            idempotency_key="payout:p1:1:abcd1234",
        )


# =============================================================================
# Error Translation Tests
# =============================================================================


class TestErrorTranslation:
    def test_invalid_request(self, mock_stripe_session, invalid_request_error):
        mock_stripe_session.retrieve.side_effect = invalid_request_error()

        with pytest.raises(StripeInvalidRequestError) as exc_info:
            StripeAdapter.retrieve_checkout_session("cs_missing")

        assert exc_info.value.stripe_code == "resource_missing"
        assert exc_info.value.is_retryable is False

    def test_invalid_account(self, mock_stripe_payout, invalid_request_error):
        mock_stripe_payout.create.side_effect = invalid_request_error(
            message="No such account: acct_invalid", code="account_invalid"
        )

        with pytest.raises(StripeInvalidAccountError):
            StripeAdapter.create_payout("acct_invalid", 5000, "usd", "key")

    def test_insufficient_funds(self, mock_stripe_payout, invalid_request_error):
        mock_stripe_payout.create.side_effect = invalid_request_error(
            message="You have insufficient funds in your Stripe account.",
            param=None,
            code="balance_insufficient",
        )

        with pytest.raises(StripeInsufficientFundsError) as exc_info:
            StripeAdapter.create_payout("acct_1", 5000, "usd", "key")

        assert exc_info.value.error_code == "INSUFFICIENT_FUNDS"

    def test_card_error(self, mock_stripe_payment_intent):
        mock_stripe_payment_intent.retrieve.side_effect = stripe.CardError(
            message="Your card was declined.", param=None, code="card_declined"
        )

        with pytest.raises(StripeInvalidRequestError) as exc_info:
            StripeAdapter.retrieve_payment_intent("pi_test_123")

        assert exc_info.value.stripe_code == "card_declined"

    def test_rate_limit(self, mock_stripe_refund):
        mock_stripe_refund.list.side_effect = stripe.RateLimitError(message="Too many requests")

        with pytest.raises(StripeRateLimitError) as exc_info:
            StripeAdapter.list_refunds("pi_test_123")

        assert exc_info.value.is_retryable is True

    def test_connection_timeout(self, mock_stripe_balance):
        mock_stripe_balance.retrieve.side_effect = stripe.APIConnectionError(
            message="Request timed out"
        )

        with pytest.raises(StripeTimeoutError):
            StripeAdapter.retrieve_balance("acct_1")

    def test_connection_error(self, mock_stripe_balance):
        mock_stripe_balance.retrieve.side_effect = stripe.APIConnectionError(
            message="Could not connect to Stripe."
        )

        with pytest.raises(StripeAPIUnavailableError) as exc_info:
            StripeAdapter.retrieve_balance("acct_1")

        assert exc_info.value.is_retryable is True

    def test_api_error(self, mock_stripe_payment_intent):
        mock_stripe_payment_intent.retrieve.side_effect = stripe.APIError(
            message="Something went wrong on Stripe's end."
        )

        with pytest.raises(StripeAPIUnavailableError):
            StripeAdapter.retrieve_payment_intent("pi_test_123")

    def test_authentication_error(self, mock_stripe_payment_intent):
        mock_stripe_payment_intent.retrieve.side_effect = stripe.AuthenticationError(
            message="Invalid API Key provided."
        )

        with pytest.raises(StripeInvalidRequestError) as exc_info:
            StripeAdapter.retrieve_payment_intent("pi_test_123")

        assert exc_info.value.stripe_code == "authentication_error"

    def test_unknown_error(self, mock_stripe_payment_intent):
        mock_stripe_payment_intent.retrieve.side_effect = RuntimeError("Unexpected")

        with pytest.raises(StripeAPIUnavailableError) as exc_info:
            StripeAdapter.retrieve_payment_intent("pi_test_123")

        assert "Unexpected" in str(exc_info.value)


# =============================================================================
# Webhook Signature Tests
# =============================================================================


class TestVerifyWebhookSignature:
    def test_valid_signature(self, mock_stripe_webhook):
        result = StripeAdapter.verify_webhook_signature(b'{"id": "evt"}', "t=1,v1=abc")

        assert result["id"] == "evt_test_123"
        assert result["type"] == "payment_intent.succeeded"

    @override_settings(STRIPE_WEBHOOK_SECRET="whsec_custom")
    def test_uses_webhook_secret(self, mock_stripe_webhook):
        StripeAdapter.verify_webhook_signature(b"{}", "t=1,v1=abc")

        mock_stripe_webhook.construct_event.assert_called_once_with(
            b"{}", "t=1,v1=abc", "whsec_custom"
        )

    def test_invalid_signature(self, mock_stripe_webhook, signature_verification_error):
        mock_stripe_webhook.construct_event.side_effect = signature_verification_error

        with pytest.raises(StripeInvalidRequestError) as exc_info:
            StripeAdapter.verify_webhook_signature(b"tampered", "bad_signature")

        assert exc_info.value.stripe_code == "signature_verification_failed"


# =============================================================================
# Configuration Tests
# =============================================================================


class TestConfiguration:
    @override_settings(STRIPE_SECRET_KEY="sk_test_custom")
    def test_uses_settings_api_key(self, mock_stripe_payment_intent, mock_payment_intent):
        mock_stripe_payment_intent.retrieve.return_value = mock_payment_intent()

        StripeAdapter.retrieve_payment_intent("pi_test_123")

        assert stripe.api_key == "sk_test_custom"

    @override_settings(STRIPE_API_TIMEOUT_SECONDS=30)
    def test_uses_settings_timeout(
        self, mock_stripe_payment_intent, mock_payment_intent, mock_stripe_http_client
    ):
        mock_stripe_payment_intent.retrieve.return_value = mock_payment_intent()

        StripeAdapter.retrieve_payment_intent("pi_test_123")

        mock_stripe_http_client.assert_called_with(timeout=30)
