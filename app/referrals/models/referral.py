"""
Referral model - a referrer to referred-user link.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from referrals.states import ReferralStatus, ReferralType


class Referral(UUIDPrimaryKeyMixin, BaseModel):
    """
    One referrer/referred pair.

    Fields:
        referrer_id: user_id of the referrer
        referred_user_id: user_id of the referred member
        referral_code: Code used at registration
        referral_type: MEMBER or MERCHANT
        status: ACTIVE, INACTIVE or CANCELLED
        first_payment_date: Set by the first commission posted
        last_renewal_date: Set by every later commission
        total_commissions_generated: Sum of commission amounts posted
    """

    referrer_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="user_id of the referrer",
    )

    referred_user_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="user_id of the referred member",
    )

    referral_code = models.CharField(
        max_length=32,
        help_text="Referral code used at registration",
    )

    referral_type = models.CharField(
        max_length=20,
        choices=ReferralType.choices,
        default=ReferralType.MEMBER,
        help_text="Kind of referral",
    )

    status = models.CharField(
        max_length=20,
        choices=ReferralStatus.choices,
        default=ReferralStatus.ACTIVE,
        help_text="Referral status",
    )

    first_payment_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the referred member first paid",
    )

    last_renewal_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the referred member last paid after the first time",
    )

    total_commissions_generated = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0"),
        help_text="Sum of commissions posted for this referral (FCFA)",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Referral"
        verbose_name_plural = "Referrals"
        constraints = [
            models.UniqueConstraint(
                fields=["referrer_id", "referred_user_id"],
                name="referral_unique_pair",
            ),
        ]

    def __str__(self) -> str:
        return f"Referral({self.referrer_id} -> {self.referred_user_id})"
