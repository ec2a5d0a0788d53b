"""
AffiliateReward model - the one-time registration reward of a referral.

The one-to-one link to Referral is what keeps a referral from ever holding
both a credit-point reward and a commission reward.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from referrals.states import RewardStatus, RewardType


class AffiliateReward(UUIDPrimaryKeyMixin, BaseModel):
    referral = models.OneToOneField(
        "referrals.Referral",
        on_delete=models.PROTECT,
        related_name="reward",
        help_text="Referral rewarded (at most one reward each)",
    )

    referrer_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="user_id of the referrer",
    )

    referred_user_id = models.CharField(
        max_length=64,
        help_text="user_id of the registering member",
    )

    reward_type = models.CharField(
        max_length=20,
        choices=RewardType.choices,
        help_text="Credit points or commission",
    )

    credit_points_awarded = models.PositiveIntegerField(
        default=0,
        help_text="Credit points awarded (credit_points rewards)",
    )

    commission_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0"),
        help_text="Commission percentage applied (commission rewards)",
    )

    commission_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0"),
        help_text="Commission awarded (FCFA)",
    )

    registration_fee = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0"),
        help_text="Registration fee the reward was decided on (FCFA)",
    )

    status = models.CharField(
        max_length=20,
        choices=RewardStatus.choices,
        default=RewardStatus.PENDING,
        help_text="Reward status",
    )

    awarded_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the reward was credited to the referrer",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Affiliate Reward"
        verbose_name_plural = "Affiliate Rewards"

    def __str__(self) -> str:
        return f"AffiliateReward({self.referrer_id}, {self.reward_type})"
