"""
Tests for OrderStatusService and InvoiceService.

Tests cover:
- Payment status aggregation from payment records
- Order completion once paid and fulfilled
- Fulfillment updates and their timeline events
- Invoice numbering (per store, per year, idempotent)
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from freezegun import freeze_time

from orders.choices import (
    FulfillmentStatus,
    OrderEventType,
    OrderPaymentStatus,
    OrderStatus,
)
from orders.models import Order
from orders.services import InvoiceService, OrderStatusService
from orders.tests.factories import OrderFactory


def payment(state, amount="100.00", refunded="0.00"):
    return SimpleNamespace(
        amount=Decimal(amount),
        refunded_amount=Decimal(refunded),
        is_captured=state == "captured",
        is_held=state == "held",
    )


class TestAggregatePaymentStatus:
    @pytest.mark.parametrize(
        "payments,expected",
        [
            ([], None),
            ([payment("held")], OrderPaymentStatus.PENDING),
            ([payment("void")], OrderPaymentStatus.VOID),
            ([payment("captured")], OrderPaymentStatus.PAID),
            ([payment("captured"), payment("held")], OrderPaymentStatus.PAID),
            ([payment("captured", refunded="30.00")], OrderPaymentStatus.PARTIALLY_REFUNDED),
            ([payment("captured", refunded="100.00")], OrderPaymentStatus.REFUNDED),
            (
                [payment("captured", "60.00", "60.00"), payment("captured", "40.00")],
                OrderPaymentStatus.PARTIALLY_REFUNDED,
            ),
            ([payment("held"), payment("void")], OrderPaymentStatus.PENDING),
        ],
    )
    def test_aggregation(self, payments, expected):
        assert OrderStatusService.aggregate_payment_status(payments) == expected


class TestEvaluateCompletion:
    def test_paid_and_fulfilled_order_completes(self, order):
        order.apply_payment_status(OrderPaymentStatus.PAID)
        order.fulfillment_status = FulfillmentStatus.FULFILLED
        order.save()

        assert OrderStatusService.evaluate_completion(order) is True

        order = Order.objects.get(id=order.id)
        assert order.status == OrderStatus.COMPLETED
        assert order.completed_at is not None

    def test_partial_fulfillment_is_enough(self, order):
        order.apply_payment_status(OrderPaymentStatus.PAID)
        order.fulfillment_status = FulfillmentStatus.PARTIAL
        order.save()

        assert OrderStatusService.evaluate_completion(order) is True

    def test_unpaid_order_stays_open(self, order):
        order.fulfillment_status = FulfillmentStatus.FULFILLED
        order.save()

        assert OrderStatusService.evaluate_completion(order) is False
        assert Order.objects.get(id=order.id).status == OrderStatus.OPEN

    def test_canceled_order_is_not_completed(self, store):
        order = OrderFactory(
            store=store,
            status=OrderStatus.CANCELED,
            fulfillment_status=FulfillmentStatus.FULFILLED,
        )
        order.apply_payment_status(OrderPaymentStatus.PAID)

        assert OrderStatusService.evaluate_completion(order) is False


class TestUpdateFulfillmentStatus:
    def test_updates_and_records_event(self, order, user):
        result = OrderStatusService.update_fulfillment_status(
            order.id, FulfillmentStatus.FULFILLED, created_by=user
        )

        assert result.success
        order = Order.objects.get(id=order.id)
        assert order.fulfillment_status == FulfillmentStatus.FULFILLED
        assert order.fulfilled_at is not None
        event = order.events.get(type=OrderEventType.FULFILLMENT)
        assert event.metadata == {"from": "unfulfilled", "to": "fulfilled"}
        assert event.created_by == user

    def test_fulfilling_paid_order_completes_it(self, order):
        order.apply_payment_status(OrderPaymentStatus.PAID)
        order.save()

        OrderStatusService.update_fulfillment_status(order.id, FulfillmentStatus.FULFILLED)

        assert Order.objects.get(id=order.id).status == OrderStatus.COMPLETED

    def test_same_status_is_a_no_op(self, order):
        result = OrderStatusService.update_fulfillment_status(
            order.id, FulfillmentStatus.UNFULFILLED
        )

        assert result.success
        assert not order.events.exists()

    def test_unknown_status(self, order):
        result = OrderStatusService.update_fulfillment_status(order.id, "shipped-ish")

        assert result.error_code == "INVALID_FULFILLMENT_STATUS"

    def test_missing_order(self, db):
        result = OrderStatusService.update_fulfillment_status(
            "00000000-0000-0000-0000-000000000000", FulfillmentStatus.FULFILLED
        )

        assert result.error_code == "ORDER_NOT_FOUND"


class TestInvoiceService:
    @freeze_time("2026-03-14 12:00:00")
    def test_first_invoice_of_the_year(self, order):
        result = InvoiceService.generate_invoice_for_order(order.id)

        assert result.success
        assert result.data.created is True
        assert result.data.invoice_number == "INV-2026-000001"
        order = Order.objects.get(id=order.id)
        assert order.invoice_number == "INV-2026-000001"
        assert order.events.filter(type=OrderEventType.INVOICE).count() == 1

    @freeze_time("2026-03-14 12:00:00")
    def test_sequence_continues_within_store(self, store):
        OrderFactory(store=store, invoice_number="INV-2026-000007")
        OrderFactory(store=store, invoice_number="INV-2025-000099")
        order = OrderFactory(store=store)

        result = InvoiceService.generate_invoice_for_order(order.id)

        assert result.data.invoice_number == "INV-2026-000008"

    @freeze_time("2026-03-14 12:00:00")
    def test_other_stores_do_not_share_sequence(self, order):
        OrderFactory(invoice_number="INV-2026-000050")

        result = InvoiceService.generate_invoice_for_order(order.id)

        assert result.data.invoice_number == "INV-2026-000001"

    def test_is_idempotent(self, order):
        first = InvoiceService.generate_invoice_for_order(order.id)
        second = InvoiceService.generate_invoice_for_order(order.id)

        assert second.success
        assert second.data.created is False
        assert second.data.invoice_number == first.data.invoice_number
        assert order.events.filter(type=OrderEventType.INVOICE).count() == 1

    def test_missing_order(self, db):
        result = InvoiceService.generate_invoice_for_order("not-a-uuid")

        assert result.error_code == "ORDER_NOT_FOUND"
