"""
WebhookEvent model for provider callback auditing.

Every delivery received on a provider webhook endpoint is stored with its raw
payload and the outcome of processing it. Providers redeliver freely, so the
table is an audit trail, not the idempotency guard: that role belongs to the
conditional status transition on PaymentAttempt.

Usage:
    from payments.models import WebhookEvent

    event = WebhookEvent.objects.create(
        provider="orange_money",
        payload=request_body,
        source_ip=get_client_ip(request),
    )
    ...
    event.mark_processed("credited 10 tokens")
    event.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from payments.state_machines import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    One inbound provider webhook delivery.

    Fields:
        provider: Provider segment of the webhook URL
        reference: Payment reference extracted from the payload, if any
        payload: Request body as received
        source_ip: Caller address
        status: Processing outcome
        outcome: Skip reason or error text
        processed_at: When processing finished
    """

    # ==========================================================================
    # Event Identification
    # ==========================================================================

    provider = models.CharField(
        max_length=32,
        db_index=True,
        help_text="Provider the callback was addressed to",
    )

    reference = models.CharField(
        max_length=128,
        blank=True,
        default="",
        db_index=True,
        help_text="Payment reference extracted from the payload",
    )

    # ==========================================================================
    # Payload
    # ==========================================================================

    payload = models.JSONField(
        default=dict,
        help_text="Raw webhook payload",
    )

    source_ip = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Address the callback came from",
    )

    # ==========================================================================
    # Processing Status
    # ==========================================================================

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.RECEIVED,
        db_index=True,
        help_text="Processing outcome",
    )

    outcome = models.TextField(
        blank=True,
        default="",
        help_text="Skip reason or error message",
    )

    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When processing finished",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["provider", "created_at"], name="payments_we_provide_4d7a90_idx"),
            models.Index(fields=["status", "created_at"], name="payments_we_status_b25e13_idx"),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.provider}, {self.reference or '-'}, {self.status})"

    # ==========================================================================
    # Helper Methods
    # ==========================================================================
    # None of these save; the caller saves after calling.

    def mark_processed(self, outcome: str = "") -> None:
        self.status = WebhookEventStatus.PROCESSED
        self.outcome = outcome
        self.processed_at = timezone.now()

    def mark_skipped(self, reason: str) -> None:
        self.status = WebhookEventStatus.SKIPPED
        self.outcome = reason
        self.processed_at = timezone.now()

    def mark_failed(self, error_message: str) -> None:
        self.status = WebhookEventStatus.FAILED
        self.outcome = error_message
        self.processed_at = timezone.now()
