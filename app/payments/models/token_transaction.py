"""
TokenTransaction model - append-only log of token movements.

Rows are inserted, never updated or deleted. Purchases carry a positive
token_amount and rescue claims a negative one, so summing a subscription's
completed rows reproduces its balance.
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from payments.state_machines import (
    PaymentMethod,
    TransactionStatus,
    TransactionType,
)


class TokenTransaction(UUIDPrimaryKeyMixin, BaseModel):
    """
    One token movement on a subscription.

    Fields:
        subscription: Balance affected
        transaction_type: PURCHASE or RESCUE_CLAIM
        token_amount: Signed token delta
        token_value: FCFA value of one token at the time of the movement
        payment_method: Provider that paid for a purchase
        transaction_reference: Payment reference the movement came from
        status: Transaction status
    """

    subscription = models.ForeignKey(
        "payments.Subscription",
        on_delete=models.PROTECT,
        related_name="transactions",
        help_text="Subscription whose balance this movement changes",
    )

    transaction_type = models.CharField(
        max_length=20,
        choices=TransactionType.choices,
        help_text="Kind of token movement",
    )

    token_amount = models.IntegerField(
        help_text="Signed token delta (purchases positive, claims negative)",
    )

    token_value = models.PositiveIntegerField(
        help_text="FCFA value of one token",
    )

    payment_method = models.CharField(
        max_length=32,
        choices=PaymentMethod.choices,
        blank=True,
        default="",
        help_text="Provider that paid for a purchase",
    )

    transaction_reference = models.CharField(
        max_length=128,
        blank=True,
        default="",
        db_index=True,
        help_text="Payment reference this movement originates from",
    )

    status = models.CharField(
        max_length=20,
        choices=TransactionStatus.choices,
        default=TransactionStatus.COMPLETED,
        help_text="Transaction status",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Token Transaction"
        verbose_name_plural = "Token Transactions"
        indexes = [
            models.Index(
                fields=["subscription", "created_at"],
                name="payments_to_subscri_8c2b7e_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(transaction_type=TransactionType.PURCHASE, token_amount__gt=0)
                    | models.Q(transaction_type=TransactionType.RESCUE_CLAIM, token_amount__lt=0)
                ),
                name="token_transaction_sign_matches_type",
            ),
        ]

    def __str__(self) -> str:
        return (
            f"TokenTransaction({self.transaction_type}, {self.token_amount:+d}, "
            f"ref={self.transaction_reference or '-'})"
        )
