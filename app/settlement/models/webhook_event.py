"""
WebhookEvent model: audit trail and fast dedup for Stripe events.

The unique stripe_event_id lets intake skip events that were already
processed. Handlers stay idempotent on their own, so a redelivery that
slips past this table (for example after a failed attempt) is harmless.
"""

from __future__ import annotations

from django.db import IntegrityError, models, transaction
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from settlement.state_machines import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    One row per Stripe event id.

    Processing Flow:
        1. Verify the Stripe signature
        2. WebhookEvent.record() by stripe_event_id
        3. PROCESSED -> acknowledge without doing anything
        4. mark_processing(), dispatch to the handler
        5. mark_processed() or mark_failed()
    """

    stripe_event_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe Event ID (evt_xxx)",
    )
    event_type = models.CharField(max_length=100, db_index=True)
    payload = models.JSONField(help_text="Full webhook payload from Stripe")

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
    )
    processed_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)
    retry_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of processing attempts",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["status", "created_at"], name="webhook_status_created_idx"),
            models.Index(fields=["event_type", "created_at"], name="webhook_type_created_idx"),
        ]

    @classmethod
    def record(cls, event_data: dict) -> tuple[WebhookEvent, bool]:
        """
        Store a verified event, or return the row already stored for its id.

        Two deliveries of the same event can race here; the loser of the
        unique-constraint race reads the winner's row.

        Returns:
            (webhook_event, created)
        """
        stripe_event_id = event_data["id"]
        existing = cls.objects.filter(stripe_event_id=stripe_event_id).first()
        if existing is not None:
            return existing, False
        try:
            with transaction.atomic():
                return (
                    cls.objects.create(
                        stripe_event_id=stripe_event_id,
                        event_type=event_data["type"],
                        payload=event_data,
                    ),
                    True,
                )
        except IntegrityError:
            return cls.objects.get(stripe_event_id=stripe_event_id), False

    def __str__(self) -> str:
        return f"WebhookEvent({self.stripe_event_id}, {self.event_type})"

    @property
    def is_processed(self) -> bool:
        return self.status == WebhookEventStatus.PROCESSED

    # Callers save after each of these.

    def mark_processing(self) -> None:
        self.status = WebhookEventStatus.PROCESSING
        self.retry_count += 1

    def mark_processed(self) -> None:
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message

    def get_object(self) -> dict:
        """The event's data.object, or an empty dict if the payload lacks one."""
        data = self.payload.get("data") if isinstance(self.payload, dict) else None
        obj = data.get("object") if isinstance(data, dict) else None
        return obj if isinstance(obj, dict) else {}

    def get_object_id(self) -> str | None:
        return self.get_object().get("id")
