"""
Subscription model - a user's token balance for one service type.

A subscription exists per (user, service type) pair. It is opened when the
user registers for a service and its balance is only ever changed with
database-side F() expressions, never by saving a value computed in Python.

Usage:
    from payments.models import Subscription

    subscription, created = Subscription.objects.open_subscription("U1", "auto")
    subscription.ledger_balance()  # sum of completed transactions
"""

from __future__ import annotations

from django.db import models
from django.db.models import Sum
from django.db.models.functions import Coalesce

from core.models import BaseModel

from payments.state_machines import ServiceType, TransactionStatus


class SubscriptionManager(models.Manager):
    def for_user(self, user_id: str, service_type: str) -> Subscription | None:
        return self.filter(user_id=user_id, service_type=service_type).first()

    def open_subscription(
        self, user_id: str, service_type: str
    ) -> tuple[Subscription, bool]:
        """
        Get or create the subscription for a user and service.

        An existing inactive subscription is reactivated rather than
        duplicated; subscriptions are never deleted.
        """
        subscription, created = self.get_or_create(
            user_id=user_id,
            service_type=service_type,
        )
        if not created and not subscription.is_active:
            subscription.is_active = True
            subscription.save(update_fields=["is_active", "updated_at"])
        return subscription, created


class Subscription(BaseModel):
    """
    Per-user, per-service token balance.

    Fields:
        user_id: Owner of the balance
        service_type: Token class
        token_balance: Current balance, never negative
        is_active: Deactivated subscriptions keep their history
        subscription_date: When the user first subscribed
        last_rescue_claim_date: Last time tokens were spent on a rescue

    Invariant:
        token_balance equals the sum of token_amount over the subscription's
        completed TokenTransaction rows (see ledger_balance()).
    """

    user_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Owner user id",
    )

    service_type = models.CharField(
        max_length=32,
        choices=ServiceType.choices,
        help_text="Token class held by this subscription",
    )

    token_balance = models.PositiveIntegerField(
        default=0,
        help_text="Current token balance (mutated only via F() expressions)",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Inactive subscriptions are kept for history, never deleted",
    )

    subscription_date = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user subscribed to this service",
    )

    last_rescue_claim_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When tokens were last spent on a rescue claim",
    )

    objects = SubscriptionManager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Subscription"
        verbose_name_plural = "Subscriptions"
        constraints = [
            models.UniqueConstraint(
                fields=["user_id", "service_type"],
                name="subscription_unique_user_service",
            ),
            models.CheckConstraint(
                condition=models.Q(token_balance__gte=0),
                name="subscription_token_balance_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Subscription({self.user_id}, {self.service_type}, {self.token_balance})"

    def ledger_balance(self) -> int:
        """Sum of signed token amounts over completed transactions."""
        return self.transactions.filter(
            status=TransactionStatus.COMPLETED,
        ).aggregate(total=Coalesce(Sum("token_amount"), 0))["total"]
