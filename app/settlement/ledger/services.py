"""
Seller ledger service.

All balance changes go through SellerLedgerService so that the immutable
ledger entry and the cached SellerBalance are always written together,
under a row lock on the store's balance.

Usage:
    from settlement.ledger import ledger, RecordTransactionParams, TransactionType

    ledger.record_transaction(RecordTransactionParams(
        store_id=store.id,
        type=TransactionType.ORDER_PAYMENT,
        amount=Decimal("100.00"),
        idempotency_key=f"order_payment:{payment.id}",
    ))

    summary = ledger.get_balance_summary(store.id)
"""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from orders.models import Store
from settlement.adapters import StripeAdapter
from settlement.exceptions import StripeError

from .models import (
    SellerBalance,
    SellerBalanceTransaction,
    SellerPayoutSettings,
    TransactionStatus,
    TransactionType,
)
from .types import BalanceSummary, Money, RecordTransactionParams

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class SellerLedgerService:
    """
    Service class for seller ledger operations.

    Key features:
    - Idempotency via unique keys (safe to retry)
    - SellerBalance row locked for every write
    - Cached balance can be rebuilt from the entries at any time
    """

    @staticmethod
    def _lock_balance(store_id: uuid.UUID, currency: str) -> SellerBalance:
        """
        Lock the store's balance row, creating it on first use.

        Must be called inside a transaction.
        """
        balance = SellerBalance.objects.select_for_update().filter(store_id=store_id).first()
        if balance is not None:
            return balance
        try:
            with transaction.atomic():
                SellerBalance.objects.create(store_id=store_id, currency=currency.lower())
        except IntegrityError:
            # Created concurrently; fall through to lock the winner's row.
            pass
        return SellerBalance.objects.select_for_update().get(store_id=store_id)

    @staticmethod
    def get_hold_period_days(store_id: uuid.UUID) -> int:
        payout_settings = SellerPayoutSettings.objects.filter(store_id=store_id).first()
        if payout_settings is not None:
            return payout_settings.hold_period_days
        return int(settings.SELLER_BALANCE_HOLD_DAYS)

    @staticmethod
    def signed_amount(transaction_type: str, amount: Decimal) -> Decimal:
        if transaction_type == TransactionType.ORDER_PAYMENT:
            return abs(amount)
        if transaction_type == TransactionType.ADJUSTMENT:
            return amount
        return -abs(amount)

    @staticmethod
    def record_transaction(params: RecordTransactionParams) -> SellerBalanceTransaction:
        """
        Record a ledger transaction and update the cached balance.

        Idempotent: if an entry with params.idempotency_key already exists it
        is returned unchanged and the balance is not touched.

        Returns:
            The created or existing SellerBalanceTransaction
        """
        with transaction.atomic():
            balance = SellerLedgerService._lock_balance(params.store_id, params.currency)

            # Idempotency check happens under the balance lock so a
            # concurrent writer with the same key is serialised behind us.
            existing = SellerBalanceTransaction.objects.filter(
                idempotency_key=params.idempotency_key
            ).first()
            if existing is not None:
                logger.info(
                    "Ledger transaction already recorded",
                    extra={
                        "store_id": str(params.store_id),
                        "idempotency_key": params.idempotency_key,
                    },
                )
                return existing

            now = timezone.now()
            amount = SellerLedgerService.signed_amount(params.type, params.amount)

            available_at = params.available_at
            if available_at is None:
                if params.type == TransactionType.ORDER_PAYMENT:
                    hold_days = SellerLedgerService.get_hold_period_days(params.store_id)
                    available_at = now + timedelta(days=hold_days)
                else:
                    available_at = now

            if params.type == TransactionType.PAYOUT:
                status = TransactionStatus.PAID
            elif available_at > now:
                status = TransactionStatus.PENDING
            else:
                status = TransactionStatus.AVAILABLE

            balance_before = balance.total_balance
            try:
                with transaction.atomic():
                    entry = SellerBalanceTransaction.objects.create(
                        store_id=params.store_id,
                        type=params.type,
                        amount=amount,
                        currency=balance.currency,
                        balance_before=balance_before,
                        balance_after=balance_before + amount,
                        order_id=params.order_id,
                        order_payment_id=params.order_payment_id,
                        payout_id=params.payout_id,
                        status=status,
                        available_at=available_at,
                        description=params.description,
                        idempotency_key=params.idempotency_key,
                        metadata=params.metadata or {},
                    )
            except IntegrityError:
                # Same key written by a writer that did not hold our lock
                return SellerBalanceTransaction.objects.get(
                    idempotency_key=params.idempotency_key
                )

            if available_at > now:
                balance.pending_balance += amount
                update_fields = ["pending_balance", "updated_at"]
            else:
                balance.available_balance += amount
                update_fields = ["available_balance", "updated_at"]
            if params.type == TransactionType.PAYOUT:
                balance.last_payout_at = now
                balance.last_payout_amount = abs(amount)
                update_fields += ["last_payout_at", "last_payout_amount"]
            balance.save(update_fields=update_fields)

        logger.info(
            "Ledger transaction recorded",
            extra={
                "store_id": str(params.store_id),
                "transaction_type": params.type,
                "amount": str(amount),
                "idempotency_key": params.idempotency_key,
                "balance_after": str(entry.balance_after),
            },
        )
        return entry

    @staticmethod
    def compute_balances(store_id: uuid.UUID, as_of=None) -> tuple[Decimal, Decimal]:
        """
        Derive (available, pending) from the ledger entries.

        available is the sum of entries whose available_at has passed,
        pending the sum of those still in the future.
        """
        as_of = as_of or timezone.now()
        entries = SellerBalanceTransaction.objects.filter(store_id=store_id)
        available = entries.filter(available_at__lte=as_of).aggregate(
            total=Sum("amount")
        )["total"]
        pending = entries.filter(available_at__gt=as_of).aggregate(
            total=Sum("amount")
        )["total"]
        return available or ZERO, pending or ZERO

    @staticmethod
    def refresh_balance(store_id: uuid.UUID) -> SellerBalance | None:
        """
        Rebuild the cached balance from the ledger.

        Moves matured order payments from pending to available. Returns
        None if the store has no balance row yet.
        """
        with transaction.atomic():
            balance = (
                SellerBalance.objects.select_for_update().filter(store_id=store_id).first()
            )
            if balance is None:
                return None

            now = timezone.now()
            available, pending = SellerLedgerService.compute_balances(store_id, as_of=now)
            changed = (
                balance.available_balance != available or balance.pending_balance != pending
            )

            SellerBalanceTransaction.objects.filter(
                store_id=store_id,
                status=TransactionStatus.PENDING,
                available_at__lte=now,
            ).update(status=TransactionStatus.AVAILABLE)

            balance.available_balance = available
            balance.pending_balance = pending
            balance.last_recomputed_at = now
            balance.save(
                update_fields=[
                    "available_balance",
                    "pending_balance",
                    "last_recomputed_at",
                    "updated_at",
                ]
            )

        if changed:
            logger.info(
                "Seller balance refreshed",
                extra={
                    "store_id": str(store_id),
                    "available_balance": str(available),
                    "pending_balance": str(pending),
                },
            )
        return balance

    @staticmethod
    def get_stripe_balance(
        store: Store, currency: str
    ) -> tuple[Decimal | None, Decimal | None]:
        """
        (available, pending) on the store's connected account, or (None, None)
        when there is no account or Stripe cannot be reached.
        """
        if not store.stripe_account_id:
            return None, None
        try:
            stripe_balance = StripeAdapter.retrieve_balance(store.stripe_account_id)
        except StripeError as e:
            logger.warning(
                f"Could not retrieve connected account balance: {e}",
                extra={"store_id": str(store.id), "stripe_account_id": store.stripe_account_id},
            )
            return None, None

        currency = currency.lower()
        available = sum(
            (
                Money.from_minor(b.amount, b.currency).amount
                for b in stripe_balance.available
                if b.currency == currency
            ),
            ZERO,
        )
        pending = sum(
            (
                Money.from_minor(b.amount, b.currency).amount
                for b in stripe_balance.pending
                if b.currency == currency
            ),
            ZERO,
        )
        return available, pending

    @staticmethod
    def get_balance_summary(
        store_id: uuid.UUID, currency: str | None = None
    ) -> BalanceSummary:
        store = Store.objects.get(id=store_id)
        balance = SellerBalance.objects.filter(store_id=store_id).first()

        if balance is None:
            available, pending = ZERO, ZERO
            currency = (currency or store.currency).lower()
            last_payout_at, last_payout_amount = None, None
        else:
            available, pending = balance.available_balance, balance.pending_balance
            currency = (currency or balance.currency).lower()
            last_payout_at, last_payout_amount = (
                balance.last_payout_at,
                balance.last_payout_amount,
            )

        stripe_available, stripe_pending = SellerLedgerService.get_stripe_balance(
            store, currency
        )
        available_for_payout = min(max(ZERO, available), max(ZERO, stripe_available or ZERO))

        shortfall = -available if available < 0 else ZERO
        pending_covers_fees = shortfall > 0 and pending >= shortfall
        amount_due = ZERO if pending_covers_fees else shortfall
        reserved_fees_from_pending = shortfall if pending_covers_fees else ZERO

        return BalanceSummary(
            store_id=store.id,
            currency=currency,
            available_balance=available,
            pending_balance=pending,
            current_balance=available + pending,
            available_for_payout=available_for_payout,
            amount_due=amount_due,
            reserved_fees_from_pending=reserved_fees_from_pending,
            stripe_available=stripe_available,
            stripe_pending=stripe_pending,
            last_payout_at=last_payout_at,
            last_payout_amount=last_payout_amount,
        )


# Singleton instance for convenience
# Usage: from settlement.ledger.services import ledger
ledger = SellerLedgerService()
