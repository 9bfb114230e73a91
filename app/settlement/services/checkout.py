"""
Checkout settlement.

Turns a completed Stripe Checkout Session into order payments:

    session -> payment intent -> metadata -> single or multi-store target
            -> draft conversion / order lookup -> fees -> OrderPayment(s)

Single-store checkouts settle in one transaction. Multi-store checkouts
settle one store per transaction: a store that fails is logged and skipped
and the others stay committed. Invoice and confirmation email tasks are
queued on commit for every payment created here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from functools import partial

from django.db import transaction

from core.helpers import parse_uuid
from core.services import BaseService, ServiceResult
from orders.exceptions import OrderNotFoundError
from orders.models import Order
from orders.services import DraftOrderService
from orders.tasks import generate_order_invoice, send_order_confirmation_email

from settlement.adapters import StripeAdapter
from settlement.exceptions import InvalidPaymentMetadataError
from settlement.fees import FeeBreakdown, allocate, calculate_fees, split_fees
from settlement.ledger import Money
from settlement.resolver import (
    MultiStorePayment,
    SingleStorePayment,
    StoreShare,
    resolve_payment_target,
)
from settlement.services.payments import PaymentStateService

logger = logging.getLogger(__name__)


@dataclass
class SettlementOutcome:
    session_id: str
    payment_intent_id: str
    order_ids: list[str] = field(default_factory=list)
    created_payment_ids: list[str] = field(default_factory=list)
    failed_stores: list[str] = field(default_factory=list)


def dispatch_order_follow_up(order_id: str, sibling_order_ids: list[str]) -> None:
    """Queue invoice generation and the confirmation email for one order."""
    try:
        generate_order_invoice.delay(order_id)
    except Exception:
        logger.error(
            "Failed to queue invoice generation",
            extra={"order_id": order_id},
            exc_info=True,
        )
    try:
        send_order_confirmation_email.delay(order_id, sibling_order_ids)
    except Exception:
        logger.error(
            "Failed to queue order confirmation email",
            extra={"order_id": order_id},
            exc_info=True,
        )


class CheckoutSettlementService(BaseService):
    @classmethod
    def settle_checkout_session(
        cls,
        session_id: str,
        fallback_payment_intent_id: str | None = None,
    ) -> ServiceResult[SettlementOutcome]:
        """
        Settle a completed checkout session.

        Args:
            session_id: Checkout Session ID (cs_xxx)
            fallback_payment_intent_id: Intent id from the webhook payload,
                used if the retrieved session has none

        Returns:
            ServiceResult with a SettlementOutcome. Missing drafts / orders and
            unusable metadata are failures. A multi-store checkout where some
            stores failed returns PARTIAL_SETTLEMENT_FAILURE with the failed
            store ids in ``errors``; the other stores are settled.

        Raises:
            StripeError: The session or intent could not be retrieved.
            InventoryReservationError: Stock for a converted draft could not
                be reserved; nothing was written for that checkout.
        """
        log = cls.get_logger()

        session = StripeAdapter.retrieve_checkout_session(session_id)
        payment_intent_id = session.payment_intent_id or fallback_payment_intent_id
        if not payment_intent_id:
            return ServiceResult.from_exception(
                InvalidPaymentMetadataError(
                    f"Checkout session {session_id} has no payment intent",
                    details={"checkout_session_id": session_id},
                )
            )

        intent = StripeAdapter.retrieve_payment_intent(payment_intent_id)
        try:
            target = resolve_payment_target(session.metadata, intent.metadata)
        except InvalidPaymentMetadataError as e:
            return ServiceResult.from_exception(e)

        total = Money.from_minor(intent.amount, intent.currency).amount
        global_fees = calculate_fees(total, intent.currency)
        outcome = SettlementOutcome(session_id=session.id, payment_intent_id=intent.id)

        log.info(
            "Settling checkout session",
            extra={
                "checkout_session_id": session.id,
                "payment_intent_id": intent.id,
                "multi_store": isinstance(target, MultiStorePayment),
                "amount": str(total),
            },
        )

        if isinstance(target, SingleStorePayment):
            return cls._settle_single_store(session.id, intent, target, global_fees, outcome)
        return cls._settle_multi_store(session.id, intent, target, global_fees, outcome)

    @classmethod
    def _settle_single_store(
        cls,
        session_id: str,
        intent,
        target: SingleStorePayment,
        fees: FeeBreakdown,
        outcome: SettlementOutcome,
    ) -> ServiceResult[SettlementOutcome]:
        with cls.atomic():
            if target.draft_id:
                conversion = DraftOrderService.complete_draft_order(
                    target.draft_id, mark_as_paid=False
                )
                if not conversion:
                    return ServiceResult.failure(conversion.error, conversion.error_code)
                order_id = conversion.data.order_id
            else:
                order_id = parse_uuid(target.order_id)

            order = Order.objects.filter(id=order_id).first()
            if order is None:
                return ServiceResult.from_exception(
                    OrderNotFoundError(
                        f"Order {target.order_id} not found",
                        details={"order_id": str(target.order_id)},
                    )
                )

            payment, created = PaymentStateService.record_payment(
                order, intent, fees.total, fees, session_id
            )
            outcome.order_ids.append(str(order.id))
            if created:
                outcome.created_payment_ids.append(str(payment.id))
                transaction.on_commit(partial(dispatch_order_follow_up, str(order.id), []))

        return ServiceResult.success(outcome)

    @staticmethod
    def _split_across_orders(
        store_fees: FeeBreakdown, orders: list[Order]
    ) -> dict:
        """Split a store's share (and its fees) across its orders by order total."""
        weights = {order.id: order.total_amount for order in orders}
        if sum(weights.values(), Decimal("0")) <= 0:
            weights = {order.id: Decimal("1") for order in orders}
        amounts = allocate(store_fees.total, weights)
        return split_fees(store_fees, amounts)

    @classmethod
    def _settle_store(
        cls,
        session_id: str,
        intent,
        share: StoreShare,
        store_fees: FeeBreakdown,
        sibling_order_ids: list[str],
    ) -> tuple[list[str], list[str]]:
        """Settle one store's orders; returns (order ids, created payment ids)."""
        order_ids = [parse_uuid(order_id) for order_id in share.order_ids]
        settled, created_payments = [], []
        with cls.atomic():
            orders = list(
                Order.objects.filter(
                    id__in=[order_id for order_id in order_ids if order_id],
                    store_id=parse_uuid(share.store_id),
                ).order_by("id")
            )
            if not orders:
                raise InvalidPaymentMetadataError(
                    f"No orders found for store {share.store_id}",
                    details={"store_id": share.store_id, "order_ids": list(share.order_ids)},
                )

            order_fees = cls._split_across_orders(store_fees, orders)
            for order in orders:
                fees = order_fees[order.id]
                payment, created = PaymentStateService.record_payment(
                    order, intent, fees.total, fees, session_id
                )
                settled.append(str(order.id))
                if created:
                    created_payments.append(str(payment.id))
                    transaction.on_commit(
                        partial(dispatch_order_follow_up, str(order.id), sibling_order_ids)
                    )
        return settled, created_payments

    @classmethod
    def _settle_multi_store(
        cls,
        session_id: str,
        intent,
        target: MultiStorePayment,
        global_fees: FeeBreakdown,
        outcome: SettlementOutcome,
    ) -> ServiceResult[SettlementOutcome]:
        log = cls.get_logger()

        shares = {
            store_id: Money.from_minor(share.amount_minor, intent.currency).amount
            for store_id, share in target.breakdown.items()
        }
        if sum(shares.values(), Decimal("0")) <= 0:
            return ServiceResult.from_exception(
                InvalidPaymentMetadataError(
                    "storeBreakdown amounts must sum to a positive total",
                    details={"payment_intent_id": intent.id},
                )
            )
        fees_by_store = split_fees(global_fees, shares)
        sibling_order_ids = list(target.order_ids)

        for store_id, share in target.breakdown.items():
            try:
                settled, created_payments = cls._settle_store(
                    session_id,
                    intent,
                    share,
                    fees_by_store[store_id],
                    sibling_order_ids,
                )
            except Exception:
                log.exception(
                    "Failed to settle store in multi-store checkout",
                    extra={
                        "store_id": store_id,
                        "payment_intent_id": intent.id,
                        "checkout_session_id": session_id,
                    },
                )
                outcome.failed_stores.append(store_id)
                continue

            outcome.order_ids.extend(settled)
            outcome.created_payment_ids.extend(created_payments)

        if outcome.failed_stores:
            return ServiceResult.failure(
                f"Settlement failed for {len(outcome.failed_stores)} of "
                f"{len(target.breakdown)} stores: {', '.join(outcome.failed_stores)}",
                error_code="PARTIAL_SETTLEMENT_FAILURE",
                errors={"failed_stores": outcome.failed_stores},
            )
        return ServiceResult.success(outcome)
