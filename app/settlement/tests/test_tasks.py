"""
Tests for settlement Celery tasks.
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.utils import timezone
from freezegun import freeze_time

from orders.tests.factories import StoreFactory
from settlement.exceptions import StripeAPIUnavailableError
from settlement.ledger import (
    PayoutSchedule,
    RecordTransactionParams,
    SellerBalance,
    SellerPayout,
    TransactionType,
    ledger,
)
from settlement.models import WebhookEvent
from settlement.services import SellerPayoutService
from settlement.state_machines import WebhookEventStatus
from settlement.tasks import (
    cleanup_old_webhooks,
    process_scheduled_payouts,
    refresh_seller_balances,
)
from settlement.tests.factories import SellerPayoutSettingsFactory, WebhookEventFactory


class TestRefreshSellerBalances:
    def test_matured_holds_become_available(self, store, settings):
        settings.SELLER_BALANCE_HOLD_DAYS = 7

        with freeze_time("2026-05-01 12:00:00") as frozen:
            ledger.record_transaction(
                RecordTransactionParams(
                    store_id=store.id,
                    type=TransactionType.ORDER_PAYMENT,
                    amount=Decimal("100.00"),
                    idempotency_key="order_payment:1",
                )
            )
            frozen.tick(timedelta(days=8))

            result = refresh_seller_balances()

        assert result == {"refreshed_count": 1, "failed_count": 0}
        balance = SellerBalance.objects.get(store=store)
        assert balance.available_balance == Decimal("100.00")
        assert balance.pending_balance == Decimal("0.00")

    def test_one_failure_does_not_stop_the_rest(self, db):
        for index, store in enumerate([StoreFactory(), StoreFactory()]):
            ledger.record_transaction(
                RecordTransactionParams(
                    store_id=store.id,
                    type=TransactionType.ADJUSTMENT,
                    amount=Decimal("1.00"),
                    idempotency_key=f"adjustment:{index}",
                )
            )

        original = ledger.refresh_balance
        calls = []

        def flaky(store_id):
            calls.append(store_id)
            if len(calls) == 1:
                raise RuntimeError("deadlock detected")
            return original(store_id)

        with patch("settlement.tasks.ledger.refresh_balance", side_effect=flaky):
            result = refresh_seller_balances()

        assert result == {"refreshed_count": 1, "failed_count": 1}
        assert len(calls) == 2


class TestCleanupOldWebhooks:
    def test_deletes_old_processed_events(self, db):
        old = timezone.now() - timedelta(days=91)
        stale = WebhookEventFactory(status=WebhookEventStatus.PROCESSED, processed_at=old)
        recent = WebhookEventFactory(
            status=WebhookEventStatus.PROCESSED, processed_at=timezone.now()
        )
        failed = WebhookEventFactory(status=WebhookEventStatus.FAILED)

        result = cleanup_old_webhooks()

        assert result == {"deleted_count": 1}
        assert not WebhookEvent.objects.filter(id=stale.id).exists()
        assert WebhookEvent.objects.filter(id__in=[recent.id, failed.id]).count() == 2

    def test_custom_retention(self, db):
        WebhookEventFactory(
            status=WebhookEventStatus.PROCESSED,
            processed_at=timezone.now() - timedelta(days=10),
        )

        assert cleanup_old_webhooks(days=7) == {"deleted_count": 1}

    def test_retention_from_settings(self, db, settings):
        settings.SETTLEMENT_WEBHOOK_RETENTION_DAYS = 5
        WebhookEventFactory(
            status=WebhookEventStatus.PROCESSED,
            processed_at=timezone.now() - timedelta(days=6),
        )

        assert cleanup_old_webhooks() == {"deleted_count": 1}


def scheduled_store(schedule=PayoutSchedule.DAILY, next_payout_at=None, **store_kwargs):
    store = StoreFactory(**store_kwargs)
    SellerPayoutSettingsFactory(
        store=store,
        schedule=schedule,
        hold_period_days=0,
        next_payout_at=next_payout_at or timezone.now() - timedelta(hours=1),
    )
    ledger.record_transaction(
        RecordTransactionParams(
            store_id=store.id,
            type=TransactionType.ORDER_PAYMENT,
            amount=Decimal("100.00"),
            idempotency_key=f"order_payment:{store.id}",
        )
    )
    return store


class TestProcessScheduledPayouts:
    def test_pays_out_due_stores(self, db, stripe_balance, mock_create_payout):
        due = scheduled_store()
        scheduled_store(next_payout_at=timezone.now() + timedelta(hours=1))
        scheduled_store(schedule=PayoutSchedule.MANUAL)

        result = process_scheduled_payouts()

        assert result == {"processed_count": 1, "skipped_count": 0, "failed_count": 0}
        assert SellerPayout.objects.get().store == due
        assert mock_create_payout.call_count == 1

    def test_counts_skipped_and_failed(self, db, stripe_balance, mock_create_payout):
        scheduled_store(stripe_payouts_enabled=False)
        scheduled_store()
        mock_create_payout.side_effect = StripeAPIUnavailableError("Stripe service error")

        result = process_scheduled_payouts()

        assert result == {"processed_count": 0, "skipped_count": 1, "failed_count": 1}

    def test_one_failure_does_not_stop_the_rest(self, db, stripe_balance, mock_create_payout):
        scheduled_store()
        scheduled_store()
        original = SellerPayoutService.pay_out_on_schedule
        calls = []

        def flaky(payout_settings):
            calls.append(payout_settings.store_id)
            if len(calls) == 1:
                raise RuntimeError("deadlock detected")
            return original(payout_settings)

        with patch("settlement.tasks.SellerPayoutService.pay_out_on_schedule", side_effect=flaky):
            result = process_scheduled_payouts()

        assert result == {"processed_count": 1, "skipped_count": 0, "failed_count": 1}
        assert len(calls) == 2
