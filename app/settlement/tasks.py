"""
Celery tasks for settlement.

- refresh_seller_balances: rolls matured holds from pending into available
  (scheduled every 15 minutes by django-celery-beat, see migration 0002)
- cleanup_old_webhooks: drops processed webhook events past retention
- process_scheduled_payouts: pays out stores on an automatic schedule
  (hourly, see migration 0005)

Usage:
    from settlement.tasks import refresh_seller_balances

    refresh_seller_balances.delay()
"""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from settlement.ledger import PayoutSchedule, SellerBalance, SellerPayoutSettings, ledger
from settlement.models import WebhookEvent
from settlement.services import SellerPayoutService
from settlement.services.payouts import SCHEDULED_PAYOUT_SKIPS
from settlement.state_machines import WebhookEventStatus

logger = logging.getLogger(__name__)


@shared_task
def refresh_seller_balances() -> dict:
    """
    Recompute every store's cached balance from its ledger entries.

    A failure for one store is logged and does not stop the others.

    Returns:
        Dict with counts of refreshed and failed stores
    """
    store_ids = list(SellerBalance.objects.values_list("store_id", flat=True))
    refreshed = 0
    failed = 0

    for store_id in store_ids:
        try:
            ledger.refresh_balance(store_id)
            refreshed += 1
        except Exception:
            failed += 1
            logger.exception(
                "Failed to refresh seller balance",
                extra={"store_id": str(store_id)},
            )

    logger.info(
        "Seller balances refreshed",
        extra={"refreshed_count": refreshed, "failed_count": failed},
    )
    return {"refreshed_count": refreshed, "failed_count": failed}


@shared_task
def cleanup_old_webhooks(days: int | None = None) -> dict:
    """
    Delete processed webhook events older than ``days``
    (SETTLEMENT_WEBHOOK_RETENTION_DAYS when not given).

    Failed events are kept for debugging.
    """
    if days is None:
        days = settings.SETTLEMENT_WEBHOOK_RETENTION_DAYS
    cutoff = timezone.now() - timedelta(days=days)

    deleted_count, _ = WebhookEvent.objects.filter(
        status=WebhookEventStatus.PROCESSED,
        processed_at__lt=cutoff,
    ).delete()

    if deleted_count > 0:
        logger.info(
            f"Deleted {deleted_count} old webhook events",
            extra={
                "deleted_count": deleted_count,
                "cutoff_date": cutoff.isoformat(),
            },
        )

    return {"deleted_count": deleted_count}


@shared_task
def process_scheduled_payouts() -> dict:
    """
    Pay out every store whose automatic payout is due.

    Skipped stores keep their next_payout_at and are retried on the next
    run. A failure for one store is logged and does not stop the others.

    Returns:
        Dict with counts of processed, skipped and failed stores
    """
    due = (
        SellerPayoutSettings.objects.select_related("store")
        .exclude(schedule=PayoutSchedule.MANUAL)
        .filter(next_payout_at__lte=timezone.now())
    )
    processed = 0
    skipped = 0
    failed = 0

    for payout_settings in due:
        log_context = {"store_id": str(payout_settings.store_id)}
        try:
            result = SellerPayoutService.pay_out_on_schedule(payout_settings)
        except Exception:
            failed += 1
            logger.exception("Scheduled payout raised", extra=log_context)
            continue

        if result:
            processed += 1
        elif result.error_code in SCHEDULED_PAYOUT_SKIPS:
            skipped += 1
            logger.info(
                f"Scheduled payout skipped: {result.error}",
                extra={**log_context, "error_code": result.error_code},
            )
        else:
            failed += 1
            logger.warning(
                f"Scheduled payout failed: {result.error}",
                extra={**log_context, "error_code": result.error_code},
            )

    logger.info(
        "Scheduled payouts processed",
        extra={"processed_count": processed, "skipped_count": skipped, "failed_count": failed},
    )
    return {"processed_count": processed, "skipped_count": skipped, "failed_count": failed}
