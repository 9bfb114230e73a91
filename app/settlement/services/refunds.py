"""
Refund reconciliation.

Refund webhooks are treated as a hint that "something changed" for a
payment intent. The reconciler re-reads every refund for the intent from
Stripe and brings the stored state in line with it:

    attributed_total(payment) = Σ succeeded refunds attributed to it
    delta = attributed_total - payment.refunded_amount

Only a positive delta writes anything (one ledger debit, keyed by the
new total), so replays, reordered events and overlapping refund events
are all harmless.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal

from core.services import BaseService, ServiceResult
from orders.choices import EventVisibility, OrderEventType, RefundStatus
from orders.models import Order, OrderRefund
from orders.services import OrderStatusService, record_order_event

from settlement.adapters import StripeAdapter
from settlement.exceptions import PaymentNotFoundError
from settlement.fees import allocate
from settlement.ledger import Money, RecordTransactionParams, TransactionType, ledger
from settlement.models import OrderPayment
from settlement.state_machines import PaymentState

ZERO = Decimal("0.00")


@dataclass
class RefundReconciliation:
    payment_intent_id: str
    refunded_payment_ids: list[str] = field(default_factory=list)
    skipped_payment_ids: list[str] = field(default_factory=list)


class RefundReconciler(BaseService):
    @classmethod
    def reconcile(cls, payment_intent_id: str) -> ServiceResult[RefundReconciliation]:
        """
        Apply every succeeded Stripe refund for a payment intent.

        A refund whose metadata.orderId names one of the intent's orders is
        attributed to that order's payment; any other refund is spread
        across all of the intent's payments in proportion to their amounts.

        Returns:
            ServiceResult failure PAYMENT_NOT_FOUND if no payments exist for
            the intent, otherwise a RefundReconciliation.

        Raises:
            StripeError: The refund list could not be fetched.
        """
        logger = cls.get_logger()
        refunds = [
            refund
            for refund in StripeAdapter.list_refunds(payment_intent_id)
            if refund.status == "succeeded"
        ]
        outcome = RefundReconciliation(payment_intent_id=payment_intent_id)

        with cls.atomic():
            order_ids = set(
                OrderPayment.objects.filter(
                    stripe_payment_intent_id=payment_intent_id
                ).values_list("order_id", flat=True)
            )
            if not order_ids:
                return ServiceResult.from_exception(
                    PaymentNotFoundError(
                        f"No payments found for payment intent {payment_intent_id}",
                        details={"payment_intent_id": payment_intent_id},
                    )
                )

            orders = {
                order.id: order
                for order in Order.objects.select_for_update()
                .filter(id__in=order_ids)
                .order_by("id")
            }
            payments = list(
                OrderPayment.objects.select_for_update()
                .filter(stripe_payment_intent_id=payment_intent_id)
                .order_by("id")
            )
            payment_by_order = {str(payment.order_id): payment for payment in payments}
            weights = {payment.id: payment.amount for payment in payments}

            attributed: dict = defaultdict(lambda: ZERO)
            for refund in refunds:
                amount = Money.from_minor(refund.amount, refund.currency).amount
                target = payment_by_order.get(refund.metadata.get("orderId", ""))
                if target is not None:
                    shares = {target.id: amount}
                else:
                    shares = allocate(amount, weights)

                for payment in payments:
                    share = shares.get(payment.id, ZERO)
                    if share <= 0:
                        continue
                    attributed[payment.id] += share
                    OrderRefund.objects.update_or_create(
                        stripe_refund_id=refund.id,
                        order_payment=payment,
                        defaults={
                            "order": orders[payment.order_id],
                            "amount": share,
                            "currency": refund.currency,
                            "reason": refund.reason or "",
                            "status": RefundStatus.SUCCEEDED,
                            "metadata": {"stripe_refund_amount": str(amount)},
                        },
                    )

            affected_orders = set()
            for payment in payments:
                total = min(attributed[payment.id], payment.amount)
                delta = total - payment.refunded_amount
                if delta <= 0:
                    continue

                if payment.state not in (PaymentState.COMPLETED, PaymentState.PARTIALLY_REFUNDED):
                    logger.warning(
                        "Refund for payment that is not captured, skipping",
                        extra={
                            "order_payment_id": str(payment.id),
                            "payment_intent_id": payment_intent_id,
                            "state": payment.state,
                            "refund_delta": str(delta),
                        },
                    )
                    outcome.skipped_payment_ids.append(str(payment.id))
                    continue

                order = orders[payment.order_id]
                ledger.record_transaction(
                    RecordTransactionParams(
                        store_id=order.store_id,
                        type=TransactionType.REFUND,
                        amount=delta,
                        currency=payment.currency,
                        order_id=order.id,
                        order_payment_id=payment.id,
                        description=f"Refund for order #{order.order_number}",
                        idempotency_key=f"refund:{payment.id}:{total}",
                        metadata={"payment_intent_id": payment_intent_id},
                    )
                )

                payment.refunded_amount = total
                if total >= payment.amount:
                    payment.refund_full()
                else:
                    payment.refund_partial()
                payment.save()

                record_order_event(
                    order,
                    OrderEventType.REFUND,
                    f"Refund of {delta} {payment.currency.upper()} processed via Stripe",
                    metadata={
                        "order_payment_id": str(payment.id),
                        "refund_amount": str(delta),
                        "refunded_total": str(total),
                    },
                    visibility=EventVisibility.CUSTOMER,
                )
                outcome.refunded_payment_ids.append(str(payment.id))
                affected_orders.add(order.id)

            for order_id in sorted(affected_orders):
                OrderStatusService.sync_payment_status(orders[order_id])

        logger.info(
            "Refunds reconciled",
            extra={
                "payment_intent_id": payment_intent_id,
                "refund_count": len(refunds),
                "refunded_payments": len(outcome.refunded_payment_ids),
                "skipped_payments": len(outcome.skipped_payment_ids),
            },
        )
        return ServiceResult.success(outcome)
