"""
Tests for settlement state machines.

Tests cover:
- OrderPayment legal and illegal transitions
- SellerPayout lifecycle
- WebhookEvent status helpers
"""

from decimal import Decimal

import pytest
from django_fsm import TransitionNotAllowed

from settlement.models import OrderPayment, WebhookEvent
from settlement.state_machines import PaymentState, PayoutState, WebhookEventStatus
from settlement.tests.factories import (
    OrderPaymentFactory,
    SellerPayoutFactory,
    WebhookEventFactory,
)


class TestOrderPaymentTransitions:
    def test_complete_from_held(self, held_payment):
        held_payment.complete()
        held_payment.save()

        payment = OrderPayment.objects.get(id=held_payment.id)
        assert payment.state == PaymentState.COMPLETED
        assert payment.captured_at is not None
        assert payment.is_captured

    def test_void_from_held(self, held_payment):
        held_payment.void()
        held_payment.save()

        payment = OrderPayment.objects.get(id=held_payment.id)
        assert payment.state == PaymentState.VOID
        assert payment.voided_at is not None
        assert not payment.is_captured

    def test_held_cannot_be_refunded(self, held_payment):
        with pytest.raises(TransitionNotAllowed):
            held_payment.refund_full()
        with pytest.raises(TransitionNotAllowed):
            held_payment.refund_partial()

        assert held_payment.state == PaymentState.HELD

    def test_completed_cannot_be_voided(self, order):
        payment = OrderPaymentFactory(order=order, state=PaymentState.COMPLETED)

        with pytest.raises(TransitionNotAllowed):
            payment.void()

    def test_void_is_terminal(self, order):
        payment = OrderPaymentFactory(order=order, state=PaymentState.VOID)

        with pytest.raises(TransitionNotAllowed):
            payment.complete()

    def test_partial_then_full_refund(self, order):
        payment = OrderPaymentFactory(order=order, state=PaymentState.COMPLETED)

        payment.refund_partial()
        first_refunded_at = payment.refunded_at
        payment.refund_partial()
        payment.refund_full()

        assert payment.state == PaymentState.REFUNDED
        assert payment.refunded_at == first_refunded_at

    def test_state_cannot_be_assigned_directly(self, held_payment):
        with pytest.raises(AttributeError):
            held_payment.state = PaymentState.COMPLETED

    def test_save_bumps_version(self, held_payment):
        assert held_payment.version == 1

        held_payment.complete()
        held_payment.save()

        assert held_payment.version == 2
        assert OrderPayment.objects.get(id=held_payment.id).version == 2

    def test_refundable_amount(self, order):
        payment = OrderPaymentFactory(order=order, refunded_amount=Decimal("30.00"))

        assert payment.refundable_amount == Decimal("70.00")


class TestSellerPayoutTransitions:
    def test_happy_path(self, store):
        payout = SellerPayoutFactory(store=store)

        payout.process()
        payout.complete(stripe_payout_id="po_123")

        assert payout.status == PayoutState.COMPLETED
        assert payout.stripe_payout_id == "po_123"
        assert payout.processed_at is not None
        assert payout.completed_at is not None

    def test_processing_payout_can_fail(self, store):
        payout = SellerPayoutFactory(store=store)
        payout.process()

        payout.fail(reason="account closed")

        assert payout.status == PayoutState.FAILED
        assert payout.failure_reason == "account closed"

    def test_pending_payout_cannot_complete(self, store):
        payout = SellerPayoutFactory(store=store)

        with pytest.raises(TransitionNotAllowed):
            payout.complete()

    def test_only_pending_payout_can_be_canceled(self, store):
        payout = SellerPayoutFactory(store=store)
        payout.process()

        with pytest.raises(TransitionNotAllowed):
            payout.cancel()


class TestWebhookEventStatus:
    def test_processing_counts_attempts(self, db):
        event = WebhookEventFactory()

        event.mark_processing()
        event.mark_processing()

        assert event.status == WebhookEventStatus.PROCESSING
        assert event.retry_count == 2

    def test_processed_clears_error(self, db):
        event = WebhookEventFactory()
        event.mark_failed("boom")

        event.mark_processed()

        assert event.is_processed
        assert event.processed_at is not None
        assert event.error_message is None

    def test_get_object(self, db):
        event = WebhookEventFactory(
            payload={"data": {"object": {"id": "pi_1", "amount": 100}}}
        )

        assert event.get_object() == {"id": "pi_1", "amount": 100}
        assert event.get_object_id() == "pi_1"

    def test_get_object_with_malformed_payload(self, db):
        event = WebhookEvent(payload={"data": "oops"})

        assert event.get_object() == {}
        assert event.get_object_id() is None
