"""
Seller payouts.

A payout moves money from the store's Stripe connected balance to its
bank. It is validated against the ledger and the connected balance, sent
to Stripe, and only recorded in the ledger once Stripe has accepted it.

Stores on a daily, weekly or monthly schedule are paid out their whole
available balance by the process_scheduled_payouts task.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db.models import Sum
from django.utils import timezone

from core.helpers import parse_uuid
from core.services import BaseService, ServiceResult
from orders.models import Store

from settlement.adapters import IdempotencyKeyGenerator, StripeAdapter
from settlement.exceptions import StripeError
from settlement.fees import quantize
from settlement.ledger import (
    InsufficientBalance,
    Money,
    PayoutValidationError,
    RecordTransactionParams,
    SellerBalance,
    SellerPayout,
    SellerPayoutSettings,
    TransactionType,
    ledger,
)
from settlement.state_machines import PayoutState

# Scheduled payout failures that only mean "not this time"
SCHEDULED_PAYOUT_SKIPS = frozenset(
    {"PAYOUT_ACCOUNT_NOT_READY", "PAYOUT_AMOUNT_DUE", "PAYOUT_BELOW_MINIMUM"}
)


class SellerPayoutService(BaseService):
    @classmethod
    def get_minimum_amount(cls, store_id) -> Decimal:
        payout_settings = SellerPayoutSettings.objects.filter(store_id=store_id).first()
        if payout_settings is not None:
            return payout_settings.minimum_amount
        return Decimal(str(settings.SELLER_PAYOUT_MINIMUM_AMOUNT))

    @classmethod
    def _validate_request(cls, store: Store, amount: Decimal) -> None:
        if amount <= 0:
            raise PayoutValidationError("Payout amount must be positive")

        minimum = cls.get_minimum_amount(store.id)
        if amount < minimum:
            raise PayoutValidationError(
                f"Minimum payout amount is {minimum}",
                error_code="PAYOUT_BELOW_MINIMUM",
                details={"minimum_amount": str(minimum)},
            )

        if not store.stripe_account_id or not store.stripe_payouts_enabled:
            raise PayoutValidationError(
                "Store has no Stripe account enabled for payouts",
                error_code="PAYOUT_ACCOUNT_NOT_READY",
            )

    @classmethod
    def request_payout(
        cls,
        store_id,
        amount: Decimal,
        requested_by=None,
    ) -> ServiceResult[SellerPayout]:
        """
        Pay out ``amount`` of the store's available balance.

        Validation (all failures are returned, nothing is written):
            - store_id and amount are given
            - amount is positive and at least the store's minimum
            - the store has a connected account with payouts enabled
            - amount is covered by available_for_payout, less payouts
              already in flight

        On a Stripe error the payout is marked failed and no ledger entry
        is written.
        """
        logger = cls.get_logger()
        missing = cls.validate_required(store_id=store_id, amount=amount)
        if missing is not None:
            return missing
        amount = quantize(amount)

        store = Store.objects.filter(id=parse_uuid(store_id)).first()
        if store is None:
            return ServiceResult.failure(f"Store {store_id} not found", "STORE_NOT_FOUND")

        try:
            cls._validate_request(store, amount)
        except PayoutValidationError as e:
            logger.info(
                f"Payout rejected: {e.message}",
                extra={"store_id": str(store.id), "amount": str(amount), **e.details},
            )
            return ServiceResult.from_exception(e)

        with cls.atomic():
            # Serialise payout requests for the store on its balance row.
            # The balance is read under the lock so payouts completed by an
            # earlier request are already debited.
            SellerBalance.objects.select_for_update().filter(store_id=store.id).first()
            ledger.refresh_balance(store.id)
            summary = ledger.get_balance_summary(store.id)
            in_flight = SellerPayout.objects.filter(
                store=store,
                status__in=[PayoutState.PENDING, PayoutState.PROCESSING],
            ).aggregate(total=Sum("amount"))["total"] or Decimal("0.00")
            available = max(Decimal("0.00"), summary.available_for_payout - in_flight)
            if amount > available:
                return ServiceResult.from_exception(
                    InsufficientBalance(store.id, required=amount, available=available)
                )

            payout = SellerPayout.objects.create(
                store=store,
                amount=amount,
                currency=summary.currency,
                requested_by=requested_by,
            )
            payout.process()
            payout.save()

        try:
            result = StripeAdapter.create_payout(
                stripe_account=store.stripe_account_id,
                amount=Money(amount, summary.currency).to_minor(),
                currency=summary.currency,
                idempotency_key=IdempotencyKeyGenerator.generate("payout", payout.id),
                metadata={"seller_payout_id": str(payout.id), "store_id": str(store.id)},
            )
        except StripeError as e:
            payout.fail(reason=e.message)
            payout.save()
            return cls.handle_exception(e, f"Payout {payout.id} for store {store.id} failed")

        with cls.atomic():
            payout.complete(stripe_payout_id=result.id)
            payout.metadata = {**payout.metadata, "stripe_status": result.status}
            payout.save()
            ledger.record_transaction(
                RecordTransactionParams(
                    store_id=store.id,
                    type=TransactionType.PAYOUT,
                    amount=amount,
                    currency=summary.currency,
                    payout_id=payout.id,
                    description=f"Payout {result.id}",
                    idempotency_key=f"payout:{payout.id}",
                    metadata={"stripe_payout_id": result.id},
                )
            )

        logger.info(
            "Payout completed",
            extra={
                "store_id": str(store.id),
                "seller_payout_id": str(payout.id),
                "stripe_payout_id": result.id,
                "amount": str(amount),
            },
        )
        return ServiceResult.success(payout)

    @classmethod
    def pay_out_on_schedule(
        cls, payout_settings: SellerPayoutSettings
    ) -> ServiceResult[SellerPayout]:
        """
        Pay out a store's whole available balance on its automatic schedule.

        Skipped with a failure in SCHEDULED_PAYOUT_SKIPS, and retried on the
        next run, while:
            - the store has no Stripe account enabled for payouts
            - the store owes fees (amount_due > 0)
            - available_for_payout is below the store's minimum

        After a successful payout next_payout_at moves past now in schedule
        steps, so a missed slot does not pay out twice.
        """
        store = payout_settings.store
        if not store.stripe_account_id or not store.stripe_payouts_enabled:
            return ServiceResult.failure(
                "Store has no Stripe account enabled for payouts",
                "PAYOUT_ACCOUNT_NOT_READY",
            )

        ledger.refresh_balance(store.id)
        summary = ledger.get_balance_summary(store.id)
        if summary.amount_due > 0:
            return ServiceResult.failure(
                f"Store owes {summary.amount_due} in fees", "PAYOUT_AMOUNT_DUE"
            )

        amount = summary.available_for_payout
        if amount <= 0 or amount < payout_settings.minimum_amount:
            return ServiceResult.failure(
                f"Available balance {amount} is below the minimum payout",
                "PAYOUT_BELOW_MINIMUM",
            )

        result = cls.request_payout(store.id, amount)
        if result:
            now = timezone.now()
            next_payout_at = payout_settings.next_payout_at or now
            while next_payout_at <= now:
                next_payout_at = payout_settings.next_payout_after(next_payout_at)
            payout_settings.next_payout_at = next_payout_at
            payout_settings.save(update_fields=["next_payout_at", "updated_at"])
        return result
