"""
Tests for SellerPayoutService.
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from freezegun import freeze_time

from orders.tests.factories import StoreFactory
from settlement.exceptions import StripeInsufficientFundsError
from settlement.ledger import (
    PayoutSchedule,
    RecordTransactionParams,
    SellerBalance,
    SellerBalanceTransaction,
    SellerPayout,
    SellerPayoutSettings,
    TransactionType,
    ledger,
)
from settlement.services import SellerPayoutService
from settlement.services.payouts import SCHEDULED_PAYOUT_SKIPS
from settlement.state_machines import PayoutState
from settlement.tests.factories import SellerPayoutFactory, SellerPayoutSettingsFactory


@pytest.fixture
def funded_store(store, stripe_balance):
    """A store with 100.00 available in the ledger and on Stripe."""
    SellerPayoutSettingsFactory(store=store, hold_period_days=0)
    ledger.record_transaction(
        RecordTransactionParams(
            store_id=store.id,
            type=TransactionType.ORDER_PAYMENT,
            amount=Decimal("100.00"),
            idempotency_key="order_payment:funded",
        )
    )
    return store


class TestRequestPayout:
    def test_successful_payout(self, funded_store, user, mock_create_payout):
        result = SellerPayoutService.request_payout(funded_store.id, Decimal("50.00"), user)

        assert result.success
        payout = SellerPayout.objects.get(id=result.data.id)
        assert payout.status == PayoutState.COMPLETED
        assert payout.stripe_payout_id == "po_test_123"
        assert payout.requested_by == user

        entry = SellerBalanceTransaction.objects.get(payout=payout)
        assert entry.type == TransactionType.PAYOUT
        assert entry.amount == Decimal("-50.00")
        assert entry.idempotency_key == f"payout:{payout.id}"

        balance = SellerBalance.objects.get(store=funded_store)
        assert balance.available_balance == Decimal("50.00")
        assert balance.last_payout_amount == Decimal("50.00")

    def test_stripe_call(self, funded_store, mock_create_payout):
        result = SellerPayoutService.request_payout(funded_store.id, Decimal("50.00"))

        kwargs = mock_create_payout.call_args.kwargs
        assert kwargs["stripe_account"] == funded_store.stripe_account_id
        assert kwargs["amount"] == 5000
        assert kwargs["currency"] == "usd"
        assert kwargs["idempotency_key"].startswith(f"payout:{result.data.id}:1:")

    def test_amount_is_required(self, store):
        result = SellerPayoutService.request_payout(store.id, None)

        assert result.error_code == "VALIDATION_ERROR"
        assert result.errors == {"amount": ["This field is required."]}

    def test_unknown_store(self, db):
        result = SellerPayoutService.request_payout("not-a-store", Decimal("50.00"))

        assert result.error_code == "STORE_NOT_FOUND"

    @pytest.mark.parametrize("amount", ["0", "-10.00"])
    def test_amount_must_be_positive(self, store, amount):
        result = SellerPayoutService.request_payout(store.id, Decimal(amount))

        assert result.error_code == "PAYOUT_INVALID"

    def test_below_default_minimum(self, store, settings):
        settings.SELLER_PAYOUT_MINIMUM_AMOUNT = "20.00"

        result = SellerPayoutService.request_payout(store.id, Decimal("19.99"))

        assert result.error_code == "PAYOUT_BELOW_MINIMUM"

    def test_store_minimum_overrides_default(self, store):
        SellerPayoutSettingsFactory(store=store, minimum_amount=Decimal("100.00"))

        result = SellerPayoutService.request_payout(store.id, Decimal("50.00"))

        assert result.error_code == "PAYOUT_BELOW_MINIMUM"

    def test_account_not_ready(self, db):
        store = StoreFactory(stripe_payouts_enabled=False)

        result = SellerPayoutService.request_payout(store.id, Decimal("50.00"))

        assert result.error_code == "PAYOUT_ACCOUNT_NOT_READY"

    def test_more_than_available(self, funded_store, mock_create_payout):
        result = SellerPayoutService.request_payout(funded_store.id, Decimal("100.01"))

        assert result.error_code == "INSUFFICIENT_BALANCE"
        assert not SellerPayout.objects.exists()
        mock_create_payout.assert_not_called()

    def test_capped_by_stripe_balance(self, funded_store, stripe_balance, mock_create_payout):
        stripe_balance.return_value.available[0].amount = 3000

        result = SellerPayoutService.request_payout(funded_store.id, Decimal("50.00"))

        assert result.error_code == "INSUFFICIENT_BALANCE"

    def test_in_flight_payouts_are_reserved(self, funded_store, mock_create_payout):
        SellerPayoutFactory(store=funded_store, amount=Decimal("80.00"))

        result = SellerPayoutService.request_payout(funded_store.id, Decimal("50.00"))

        assert result.error_code == "INSUFFICIENT_BALANCE"

    def test_payout_completed_before_lock_is_debited(
        self, funded_store, mock_create_payout, mocker
    ):
        """A payout that completes while this request validates uses up the balance."""
        validate = SellerPayoutService._validate_request

        def validate_while_other_payout_completes(store, amount):
            validate(store, amount)
            other = SellerPayoutFactory(
                store=store, amount=Decimal("100.00"), status=PayoutState.COMPLETED
            )
            ledger.record_transaction(
                RecordTransactionParams(
                    store_id=store.id,
                    type=TransactionType.PAYOUT,
                    amount=Decimal("100.00"),
                    payout_id=other.id,
                    idempotency_key=f"payout:{other.id}",
                )
            )

        mocker.patch.object(
            SellerPayoutService,
            "_validate_request",
            side_effect=validate_while_other_payout_completes,
        )

        result = SellerPayoutService.request_payout(funded_store.id, Decimal("100.00"))

        assert result.error_code == "INSUFFICIENT_BALANCE"
        mock_create_payout.assert_not_called()
        balance = SellerBalance.objects.get(store=funded_store)
        assert balance.available_balance == Decimal("0.00")
        assert SellerPayout.objects.filter(store=funded_store).count() == 1

    def test_pending_funds_are_not_payable(self, store, stripe_balance, mock_create_payout):
        ledger.record_transaction(
            RecordTransactionParams(
                store_id=store.id,
                type=TransactionType.ORDER_PAYMENT,
                amount=Decimal("100.00"),
                idempotency_key="order_payment:pending",
            )
        )

        result = SellerPayoutService.request_payout(store.id, Decimal("50.00"))

        assert result.error_code == "INSUFFICIENT_BALANCE"

    def test_stripe_failure_marks_payout_failed(self, funded_store, mock_create_payout):
        mock_create_payout.side_effect = StripeInsufficientFundsError(
            "Insufficient funds in Stripe account", stripe_code="balance_insufficient"
        )

        result = SellerPayoutService.request_payout(funded_store.id, Decimal("50.00"))

        assert not result.success
        assert result.error_code == "INSUFFICIENT_FUNDS"
        payout = SellerPayout.objects.get(store=funded_store)
        assert payout.status == PayoutState.FAILED
        assert payout.failure_reason == "Insufficient funds in Stripe account"
        assert not SellerBalanceTransaction.objects.filter(
            type=TransactionType.PAYOUT
        ).exists()


@pytest.fixture
def scheduled_settings(store, stripe_balance):
    """A daily-schedule store with 100.00 available and a payout due since 10:00."""
    with freeze_time("2026-05-01 09:00:00"):
        payout_settings = SellerPayoutSettingsFactory(
            store=store,
            schedule=PayoutSchedule.DAILY,
            hold_period_days=0,
            next_payout_at=datetime(2026, 5, 1, 10, tzinfo=UTC),
        )
        ledger.record_transaction(
            RecordTransactionParams(
                store_id=store.id,
                type=TransactionType.ORDER_PAYMENT,
                amount=Decimal("100.00"),
                idempotency_key="order_payment:scheduled",
            )
        )
    return payout_settings


@freeze_time("2026-05-01 10:05:00")
class TestPayOutOnSchedule:
    def test_pays_out_available_balance(self, scheduled_settings, mock_create_payout):
        result = SellerPayoutService.pay_out_on_schedule(scheduled_settings)

        assert result.success
        assert result.data.amount == Decimal("100.00")
        assert mock_create_payout.call_args.kwargs["amount"] == 10000
        assert SellerBalance.objects.get(store=scheduled_settings.store).available_balance == (
            Decimal("0.00")
        )

    def test_advances_next_payout(self, scheduled_settings, mock_create_payout):
        SellerPayoutService.pay_out_on_schedule(scheduled_settings)

        payout_settings = SellerPayoutSettings.objects.get(id=scheduled_settings.id)
        assert payout_settings.next_payout_at == datetime(2026, 5, 2, 10, tzinfo=UTC)

    def test_missed_slots_are_not_paid_twice(self, scheduled_settings, mock_create_payout):
        scheduled_settings.next_payout_at = datetime(2026, 4, 28, 10, tzinfo=UTC)

        SellerPayoutService.pay_out_on_schedule(scheduled_settings)

        assert mock_create_payout.call_count == 1
        payout_settings = SellerPayoutSettings.objects.get(id=scheduled_settings.id)
        assert payout_settings.next_payout_at == datetime(2026, 5, 2, 10, tzinfo=UTC)

    def test_below_minimum_is_skipped(self, scheduled_settings, mock_create_payout):
        scheduled_settings.minimum_amount = Decimal("150.00")

        result = SellerPayoutService.pay_out_on_schedule(scheduled_settings)

        assert result.error_code == "PAYOUT_BELOW_MINIMUM"
        assert result.error_code in SCHEDULED_PAYOUT_SKIPS
        mock_create_payout.assert_not_called()
        payout_settings = SellerPayoutSettings.objects.get(id=scheduled_settings.id)
        assert payout_settings.next_payout_at == datetime(2026, 5, 1, 10, tzinfo=UTC)

    def test_amount_due_is_skipped(self, scheduled_settings, mock_create_payout):
        ledger.record_transaction(
            RecordTransactionParams(
                store_id=scheduled_settings.store_id,
                type=TransactionType.REFUND,
                amount=Decimal("130.00"),
                idempotency_key="refund:scheduled:130.00",
            )
        )

        result = SellerPayoutService.pay_out_on_schedule(scheduled_settings)

        assert result.error_code == "PAYOUT_AMOUNT_DUE"
        mock_create_payout.assert_not_called()

    def test_account_not_ready_is_skipped(self, scheduled_settings, mock_create_payout):
        store = scheduled_settings.store
        store.stripe_payouts_enabled = False
        store.save()

        result = SellerPayoutService.pay_out_on_schedule(scheduled_settings)

        assert result.error_code == "PAYOUT_ACCOUNT_NOT_READY"
        mock_create_payout.assert_not_called()
