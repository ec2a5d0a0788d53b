"""
Member model - the referral view of a user.

Holds who referred the user and the balances a referrer accumulates.
Balances are only changed with F() expressions so two commissions posted
for the same referrer at the same instant both land.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models

from core.models import BaseModel


class Member(BaseModel):
    """
    Referral profile of a user.

    Fields:
        user_id: User this profile belongs to
        referred_by: user_id of the referrer, if any
        available_commissions: Commission not yet paid out (FCFA)
        total_commissions_earned: Lifetime commission (FCFA)
        current_credits: Unspent credit points
        total_credits_earned: Lifetime credit points
    """

    user_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="User id",
    )

    referred_by = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        db_index=True,
        help_text="user_id of the member who referred this one",
    )

    # ==========================================================================
    # Balances
    # ==========================================================================

    available_commissions = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0"),
        help_text="Commission earned and not yet paid out (FCFA)",
    )

    total_commissions_earned = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0"),
        help_text="Lifetime commission earned (FCFA)",
    )

    current_credits = models.PositiveIntegerField(
        default=0,
        help_text="Unspent credit points",
    )

    total_credits_earned = models.PositiveIntegerField(
        default=0,
        help_text="Lifetime credit points earned",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Member"
        verbose_name_plural = "Members"

    def __str__(self) -> str:
        return f"Member({self.user_id})"
