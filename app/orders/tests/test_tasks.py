"""
Tests for order Celery tasks.
"""

from smtplib import SMTPException
from unittest.mock import patch

from orders.tasks import generate_order_invoice, send_order_confirmation_email
from orders.tests.factories import OrderFactory, OrderItemFactory, StoreFactory


class TestGenerateOrderInvoice:
    def test_generates_invoice(self, order):
        result = generate_order_invoice(str(order.id))

        assert result["status"] == "generated"
        assert result["invoice_number"].startswith("INV-")

    def test_existing_invoice_is_reported(self, order):
        generate_order_invoice(str(order.id))

        result = generate_order_invoice(str(order.id))

        assert result["status"] == "exists"

    def test_missing_order(self, db):
        result = generate_order_invoice("00000000-0000-0000-0000-000000000000")

        assert result["status"] == "failed"


class TestSendOrderConfirmationEmail:
    def test_sends_to_customer(self, order, mailoutbox):
        OrderItemFactory(order=order, title="Walnut tray")

        result = send_order_confirmation_email(str(order.id))

        assert result["status"] == "sent"
        assert len(mailoutbox) == 1
        email = mailoutbox[0]
        assert email.to == [order.customer_email]
        assert email.reply_to == [order.store.email]
        assert f"Order #{order.order_number} confirmed" in email.subject
        assert "Walnut tray" in email.body
        assert email.alternatives[0][1] == "text/html"

    def test_lists_sibling_orders(self, order, mailoutbox):
        sibling = OrderFactory(store=StoreFactory(name="Other Shop"))

        send_order_confirmation_email(str(order.id), [str(sibling.id), str(order.id)])

        body = mailoutbox[0].body
        assert "This checkout also included" in body
        assert f"Order #{sibling.order_number} from Other Shop" in body
        assert f"Order #{order.order_number} from" not in body

    def test_uses_configured_sender(self, order, mailoutbox, settings):
        settings.ORDERS_CONFIRMATION_FROM_EMAIL = "orders@shop.example"

        send_order_confirmation_email(str(order.id))

        assert mailoutbox[0].from_email == "orders@shop.example"

    def test_skips_order_without_email(self, store, mailoutbox):
        order = OrderFactory(store=store, customer_email="")

        result = send_order_confirmation_email(str(order.id))

        assert result["status"] == "skipped"
        assert mailoutbox == []

    def test_missing_order(self, db, mailoutbox):
        result = send_order_confirmation_email("00000000-0000-0000-0000-000000000000")

        assert result["status"] == "not_found"

    def test_smtp_failure_is_reported(self, order):
        with patch(
            "orders.tasks.EmailMultiAlternatives.send",
            side_effect=SMTPException("connection refused"),
        ):
            result = send_order_confirmation_email(str(order.id))

        assert result["status"] == "failed"
