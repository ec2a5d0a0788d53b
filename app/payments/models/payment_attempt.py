"""
PaymentAttempt model - one row per token purchase sent to a provider.

The attempt is written when a checkout is initiated and is later used to fill
in whatever a provider confirmation leaves out (webhooks often carry only a
reference and an amount).

Usage:
    from payments.models import PaymentAttempt
    from payments.state_machines import AttemptStatus

    attempt = PaymentAttempt.objects.latest_for_reference("TOKENS_auto_U1_1700")

    # Claim the reference for crediting; exactly one caller sees 1
    claimed = PaymentAttempt.objects.transition(
        reference, AttemptStatus.PENDING, AttemptStatus.COMPLETED
    )
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from payments.state_machines import AttemptStatus, PaymentMethod, ServiceType


class PaymentAttemptQuerySet(models.QuerySet):
    """QuerySet with the conditional status transitions used by reconciliation."""

    def latest_for_reference(self, reference: str) -> PaymentAttempt | None:
        """Most recent attempt for a reference, or None."""
        return self.filter(reference=reference).order_by("-created_at").first()

    def transition(
        self,
        reference: str,
        from_status: str,
        to_status: str,
        **fields,
    ) -> int:
        """
        Move an attempt between statuses with a single conditional UPDATE.

        The row only changes if its current status is `from_status`, so
        concurrent callers racing on the same reference are serialized by the
        database: exactly one of them gets 1 back.

        Args:
            reference: Attempt reference
            from_status: Status the row must currently have
            to_status: Status to set
            **fields: Extra columns to set in the same UPDATE

        Returns:
            Number of rows updated (0 or 1)
        """
        stamp = timezone.now()
        if to_status == AttemptStatus.COMPLETED:
            fields.setdefault("completed_at", stamp)
        elif to_status == AttemptStatus.FAILED:
            fields.setdefault("failed_at", stamp)

        return self.filter(reference=reference, status=from_status).update(
            status=to_status,
            updated_at=stamp,
            **fields,
        )

    def stale_pending(self, older_than, methods=None):
        """Pending attempts created before `older_than`, oldest first."""
        qs = self.filter(status=AttemptStatus.PENDING, created_at__lt=older_than)
        if methods:
            qs = qs.filter(method__in=methods)
        return qs.order_by("created_at")


class PaymentAttempt(UUIDPrimaryKeyMixin, BaseModel):
    """
    A recorded intention to pay, pending provider confirmation.

    Status Flow:
        PENDING -> COMPLETED (credited)
        PENDING -> FAILED (definitive provider failure)

    Fields:
        reference: Caller-chosen idempotency key shared with the provider
        user_id: Buyer (may be unknown until a confirmation names it)
        service_type: Token class being purchased
        tokens_requested: Token count chosen at checkout
        amount: Amount in FCFA (XOF has no minor unit)
        method: Provider used
        status: Current status
        gateway_payload: Provider initiation response, for diagnostics
        completed_at / failed_at: Terminal transition timestamps

    Note:
        The PENDING -> COMPLETED transition is the only place tokens are
        credited. It is performed through PaymentAttemptQuerySet.transition,
        never by assigning status and calling save().
    """

    # ==========================================================================
    # Identification
    # ==========================================================================

    reference = models.CharField(
        max_length=128,
        unique=True,
        help_text="Caller-supplied idempotency key (provider order id)",
    )

    user_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        db_index=True,
        help_text="Buyer user id, resolved later if unknown at creation",
    )

    service_type = models.CharField(
        max_length=32,
        choices=ServiceType.choices,
        null=True,
        blank=True,
        help_text="Token class being purchased",
    )

    # ==========================================================================
    # Amount
    # ==========================================================================

    tokens_requested = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Number of tokens chosen at checkout",
    )

    amount = models.BigIntegerField(
        help_text="Amount in FCFA",
    )

    method = models.CharField(
        max_length=32,
        choices=PaymentMethod.choices,
        help_text="Payment provider",
    )

    # ==========================================================================
    # Status
    # ==========================================================================

    status = models.CharField(
        max_length=20,
        choices=AttemptStatus.choices,
        default=AttemptStatus.PENDING,
        db_index=True,
        help_text="Current attempt status",
    )

    gateway_payload = models.JSONField(
        default=dict,
        blank=True,
        help_text="Provider initiation response (secrets stripped)",
    )

    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the attempt was confirmed and credited",
    )

    failed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the provider reported a failure",
    )

    failure_reason = models.TextField(
        blank=True,
        default="",
        help_text="Provider failure message, if any",
    )

    objects = PaymentAttemptQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Attempt"
        verbose_name_plural = "Payment Attempts"
        indexes = [
            models.Index(fields=["status", "created_at"], name="payments_pa_status_6f1d2c_idx"),
            models.Index(fields=["method", "status"], name="payments_pa_method_3a9e41_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gte=0),
                name="payment_attempt_amount_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"PaymentAttempt({self.reference}, {self.status})"

    @property
    def is_pending(self) -> bool:
        return self.status == AttemptStatus.PENDING

    @property
    def is_completed(self) -> bool:
        return self.status == AttemptStatus.COMPLETED
