"""
Payment state service.

Drives OrderPayment through its state machine and writes the ledger
entries and order timeline events that go with each transition.

Lock order is always Order, then OrderPayment, then SellerBalance (taken
inside the ledger service). Every path that touches more than one of these
acquires them in that order.

Usage:
    from settlement.services import PaymentStateService

    payment, created = PaymentStateService.record_payment(
        order, intent, amount=Decimal("100.00"), fees=fees, session_id="cs_123"
    )
    PaymentStateService.complete_payment(payment)
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django_fsm import TransitionNotAllowed

from core.services import BaseService, ServiceResult
from orders.choices import EventVisibility, OrderEventType
from orders.models import Order
from orders.services import OrderStatusService, record_order_event

from settlement.exceptions import InvalidStateTransitionError, PaymentNotFoundError
from settlement.ledger import RecordTransactionParams, TransactionType, ledger
from settlement.models import OrderPayment
from settlement.state_machines import PaymentState

if TYPE_CHECKING:
    from settlement.adapters import PaymentIntentResult
    from settlement.fees import FeeBreakdown


class PaymentStateService(BaseService):
    """Records processor payments and applies capture / void transitions."""

    @classmethod
    def _lock(cls, payment_id) -> tuple[Order, OrderPayment]:
        order_id = OrderPayment.objects.values_list("order_id", flat=True).get(id=payment_id)
        order = Order.objects.select_for_update().get(id=order_id)
        payment = OrderPayment.objects.select_for_update().get(id=payment_id)
        return order, payment

    @classmethod
    def record_payment(
        cls,
        order: Order,
        intent: PaymentIntentResult,
        amount: Decimal,
        fees: FeeBreakdown,
        session_id: str | None = None,
    ) -> tuple[OrderPayment, bool]:
        """
        Get or create the payment for (order, intent) and sync it with the intent.

        A new payment starts held. If the intent has already succeeded or
        been canceled by the time we see it (events can arrive in any
        order) the payment is completed or voided straight away.

        Returns:
            (payment, created)
        """
        logger = cls.get_logger()

        with cls.atomic():
            order = Order.objects.select_for_update().get(id=order.id)
            payment = OrderPayment.objects.filter(
                order=order, stripe_payment_intent_id=intent.id
            ).first()
            created = False

            if payment is None:
                try:
                    with transaction.atomic():
                        payment = OrderPayment.objects.create(
                            order=order,
                            amount=amount,
                            currency=intent.currency,
                            stripe_payment_intent_id=intent.id,
                            stripe_checkout_session_id=session_id,
                            stripe_charge_id=intent.latest_charge_id,
                            platform_fee_amount=fees.platform_fee,
                            processor_fee_amount=fees.processor_fee,
                            net_amount_to_store=fees.net_to_store,
                        )
                    created = True
                except IntegrityError:
                    payment = OrderPayment.objects.get(
                        order=order, stripe_payment_intent_id=intent.id
                    )

            if created:
                logger.info(
                    "Order payment recorded",
                    extra={
                        "order_id": str(order.id),
                        "order_payment_id": str(payment.id),
                        "payment_intent_id": intent.id,
                        "amount": str(amount),
                        "intent_status": intent.status,
                    },
                )

            if intent.status == "succeeded":
                payment = cls.complete_payment(payment)
            elif intent.status == "canceled":
                payment = cls.void_payment(payment)
            else:
                OrderStatusService.sync_payment_status(order)

        return payment, created

    @classmethod
    def complete_payment(cls, payment: OrderPayment) -> OrderPayment:
        """
        Capture a held payment.

        Writes the order_payment credit and the platform and Stripe fee
        debits, each keyed "<type>:<payment id>". A payment that is already
        captured is returned unchanged.

        Raises:
            InvalidStateTransitionError: The payment was voided.
        """
        with cls.atomic():
            order, payment = cls._lock(payment.id)
            if payment.is_captured:
                return payment

            try:
                payment.complete()
            except TransitionNotAllowed as e:
                raise InvalidStateTransitionError(
                    f"Cannot complete payment in state {payment.state}",
                    details={
                        "order_payment_id": str(payment.id),
                        "current_state": payment.state,
                        "attempted_state": PaymentState.COMPLETED,
                    },
                ) from e
            payment.save()

            entries = [
                (TransactionType.ORDER_PAYMENT, payment.amount, "Payment received"),
                (TransactionType.PLATFORM_FEE, payment.platform_fee_amount, "Platform fee"),
                (TransactionType.STRIPE_FEE, payment.processor_fee_amount, "Stripe processing fee"),
            ]
            for transaction_type, amount, label in entries:
                if amount <= 0:
                    continue
                ledger.record_transaction(
                    RecordTransactionParams(
                        store_id=order.store_id,
                        type=transaction_type,
                        amount=amount,
                        currency=payment.currency,
                        order_id=order.id,
                        order_payment_id=payment.id,
                        description=f"{label} for order #{order.order_number}",
                        idempotency_key=f"{transaction_type}:{payment.id}",
                        metadata={"payment_intent_id": payment.stripe_payment_intent_id},
                    )
                )

            record_order_event(
                order,
                OrderEventType.PAYMENT,
                f"Payment received via Stripe ({payment.amount} {payment.currency.upper()})",
                metadata={
                    "order_payment_id": str(payment.id),
                    "payment_intent_id": payment.stripe_payment_intent_id,
                    "amount": str(payment.amount),
                    "platform_fee": str(payment.platform_fee_amount),
                    "processor_fee": str(payment.processor_fee_amount),
                    "net_to_store": str(payment.net_amount_to_store),
                },
                visibility=EventVisibility.CUSTOMER,
            )
            OrderStatusService.sync_payment_status(order)

        cls.get_logger().info(
            "Order payment completed",
            extra={
                "order_id": str(order.id),
                "order_payment_id": str(payment.id),
                "store_id": str(order.store_id),
                "amount": str(payment.amount),
            },
        )
        return payment

    @classmethod
    def void_payment(cls, payment: OrderPayment) -> OrderPayment:
        """
        Void a held payment. No ledger entries are written.

        A payment that is already void is returned unchanged.

        Raises:
            InvalidStateTransitionError: The payment was already captured.
        """
        with cls.atomic():
            order, payment = cls._lock(payment.id)
            if payment.state == PaymentState.VOID:
                return payment

            try:
                payment.void()
            except TransitionNotAllowed as e:
                raise InvalidStateTransitionError(
                    f"Cannot void payment in state {payment.state}",
                    details={
                        "order_payment_id": str(payment.id),
                        "current_state": payment.state,
                        "attempted_state": PaymentState.VOID,
                    },
                ) from e
            payment.save()

            record_order_event(
                order,
                OrderEventType.PAYMENT,
                "Payment authorization voided",
                metadata={
                    "order_payment_id": str(payment.id),
                    "payment_intent_id": payment.stripe_payment_intent_id,
                },
            )
            OrderStatusService.sync_payment_status(order)

        cls.get_logger().info(
            "Order payment voided",
            extra={"order_id": str(order.id), "order_payment_id": str(payment.id)},
        )
        return payment

    @classmethod
    def _apply_to_intent(cls, payment_intent_id: str, action) -> ServiceResult[list[OrderPayment]]:
        payment_ids = list(
            OrderPayment.objects.filter(stripe_payment_intent_id=payment_intent_id)
            .order_by("id")
            .values_list("id", flat=True)
        )
        if not payment_ids:
            return ServiceResult.from_exception(
                PaymentNotFoundError(
                    f"No payments found for payment intent {payment_intent_id}",
                    details={"payment_intent_id": payment_intent_id},
                )
            )

        payments = []
        for payment_id in payment_ids:
            payment = OrderPayment.objects.get(id=payment_id)
            try:
                payments.append(action(payment))
            except InvalidStateTransitionError as e:
                cls.get_logger().warning(
                    f"Skipping payment: {e.message}",
                    extra={"payment_intent_id": payment_intent_id, **e.details},
                )
        return ServiceResult.success(payments)

    @classmethod
    def capture_intent(cls, payment_intent_id: str) -> ServiceResult[list[OrderPayment]]:
        """Complete every payment recorded for a succeeded payment intent."""
        return cls._apply_to_intent(payment_intent_id, cls.complete_payment)

    @classmethod
    def void_intent(cls, payment_intent_id: str) -> ServiceResult[list[OrderPayment]]:
        """Void every payment recorded for a canceled payment intent."""
        return cls._apply_to_intent(payment_intent_id, cls.void_payment)
