"""
Commission model for per-payment referral commissions.

One row per qualifying payment of a referred member. The unique
(referral, payment_reference) constraint makes re-posting the same payment
a no-op, so the posting task can be retried freely.

Usage:
    from referrals.models import Commission

    commission = Commission.objects.get(id=commission_id)
    commission.mark_paid()  # pending -> paid
    commission.save()
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from referrals.states import CommissionStatus, CommissionType

COMMISSION_RATE = Decimal("0.10")


class Commission(UUIDPrimaryKeyMixin, BaseModel):
    """
    Commission owed to a referrer for one payment.

    State Flow:
        PENDING -> PAID
        PENDING -> CANCELLED

    Fields:
        referral: Referral the payment came through
        referrer_id / referred_user_id: Denormalized from the referral
        commission_type: INITIAL or RENEWAL
        payment_amount: Payment the commission is computed from (FCFA)
        commission_rate: Fixed at 0.10
        commission_amount: payment_amount * commission_rate
        payment_reference: Payment reference, unique per referral
        status: Managed by FSM
        paid_at: Set on PENDING -> PAID
    """

    referral = models.ForeignKey(
        "referrals.Referral",
        on_delete=models.PROTECT,
        related_name="commissions",
        help_text="Referral the payment came through",
    )

    referrer_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="user_id of the referrer",
    )

    referred_user_id = models.CharField(
        max_length=64,
        help_text="user_id of the paying member",
    )

    commission_type = models.CharField(
        max_length=20,
        choices=CommissionType.choices,
        help_text="Initial or renewal payment",
    )

    # ==========================================================================
    # Amount
    # ==========================================================================

    payment_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Payment amount (FCFA)",
    )

    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        default=COMMISSION_RATE,
        help_text="Commission rate applied",
    )

    commission_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Commission owed (FCFA)",
    )

    payment_reference = models.CharField(
        max_length=128,
        blank=True,
        default="",
        help_text="Reference of the payment the commission is for",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=CommissionStatus.PENDING,
        choices=CommissionStatus.choices,
        db_index=True,
        help_text="Current commission status (managed by FSM)",
    )

    paid_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the commission was paid out",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Commission"
        verbose_name_plural = "Commissions"
        constraints = [
            models.UniqueConstraint(
                fields=["referral", "payment_reference"],
                condition=~models.Q(payment_reference=""),
                name="commission_unique_referral_payment",
            ),
        ]

    def __str__(self) -> str:
        return f"Commission({self.referrer_id}, {self.commission_amount}, {self.status})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=CommissionStatus.PENDING,
        target=CommissionStatus.PAID,
    )
    def mark_paid(self):
        """
        Record the payout of this commission.

        Transition: PENDING -> PAID
        """
        self.paid_at = timezone.now()

    @transition(
        field=status,
        source=CommissionStatus.PENDING,
        target=CommissionStatus.CANCELLED,
    )
    def cancel(self):
        """Transition: PENDING -> CANCELLED"""
        pass
