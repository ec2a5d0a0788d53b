"""
Credit engine: the single place tokens are added to a subscription.

Every confirmation path (webhooks, verify, periodic reconciliation) ends
here. A reference is credited at most once: the pending -> completed
transition of its PaymentAttempt is a conditional UPDATE, and only the
caller whose UPDATE changed a row goes on to write the transaction and bump
the balance, all inside one database transaction.

credit() never raises. Anything that prevents a credit is reported as a
CreditResult with a SkipReason, because webhook handlers must acknowledge
every delivery whatever happens here.

Usage:
    from payments.services.credit_engine import CreditRequest, credit

    result = credit(CreditRequest(reference="R1", amount=5000, method="orange_money"))
    if result.credited:
        print(f"{result.tokens} tokens credited")
    else:
        print(f"Skipped: {result.skip_reason}")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from payments.models import PaymentAttempt, Subscription, TokenTransaction
from payments.pricing import compute_tokens, token_value_for
from payments.references import parse_reference
from payments.services.attempt_ledger import resolve_attempt
from payments.signals import tokens_credited
from payments.state_machines import (
    AttemptStatus,
    TransactionStatus,
    TransactionType,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Types
# =============================================================================


class SkipReason(str, Enum):
    """Why a confirmation did not result in a credit."""

    UNRESOLVED_IDENTITY = "unresolved_identity"
    NO_SUBSCRIPTION = "no_subscription"
    INVALID_AMOUNT = "invalid_amount"
    ALREADY_PROCESSED = "already_processed"
    ERROR = "error"


@dataclass
class CreditRequest:
    """
    Whatever a confirmation carries. Missing fields are filled from the
    attempt recorded for the reference.

    Attributes:
        reference: Attempt reference / provider order id
        amount: Confirmed amount in FCFA
        user_id: Buyer, if the confirmation names one
        service_type: Token class, if the confirmation names one
        tokens: Explicit token count, overrides amount-based computation
        method: PaymentMethod value of the confirming provider
    """

    reference: str | None = None
    amount: int | None = None
    user_id: str | None = None
    service_type: str | None = None
    tokens: int | None = None
    method: str = ""


@dataclass
class CreditResult:
    """
    Outcome of a credit() call.

    Either credited is True with tokens/subscription_id/transaction_id set,
    or skip_reason says why nothing was written.
    """

    credited: bool
    reference: str | None = None
    user_id: str | None = None
    service_type: str | None = None
    tokens: int = 0
    subscription_id: int | None = None
    transaction_id: str | None = None
    skip_reason: SkipReason | None = None
    detail: str = ""

    @classmethod
    def skipped(
        cls, reason: SkipReason, reference: str | None = None, detail: str = ""
    ) -> CreditResult:
        return cls(credited=False, reference=reference, skip_reason=reason, detail=detail)


# =============================================================================
# Engine
# =============================================================================


def credit(request: CreditRequest) -> CreditResult:
    """
    Credit the tokens bought by a confirmed payment.

    Steps:
        1. Fill user/service/tokens/amount from the recorded attempt, or
           from the reference itself when no attempt was recorded
        2. Find the user's subscription for the service
        3. Compute the token count from the price table
        4. Claim the reference (conditional pending -> completed UPDATE)
        5. Append the purchase transaction and increment the balance
        6. After commit, send tokens_credited

    Steps 4 and 5 share a transaction: a failure in 5 releases the claim.

    Returns:
        CreditResult; never raises
    """
    reference = request.reference or None
    log_context = {"reference": reference, "method": request.method}

    try:
        resolved = resolve_attempt(reference)
        parsed = None if resolved.found else parse_reference(reference)
        user_id = request.user_id or resolved.user_id or (parsed and parsed.user_id)
        service_type = (
            request.service_type or resolved.service_type or (parsed and parsed.service_type)
        )
        tokens_hint = request.tokens or resolved.tokens
        amount = request.amount if request.amount else resolved.amount
        method = request.method or resolved.method or ""

        if not user_id or not service_type:
            logger.warning("Cannot resolve buyer for confirmation", extra=log_context)
            return CreditResult.skipped(SkipReason.UNRESOLVED_IDENTITY, reference)

        log_context.update({"user_id": user_id, "service_type": service_type})

        subscription = Subscription.objects.for_user(user_id, service_type)
        if subscription is None:
            logger.warning("No subscription for confirmed payment", extra=log_context)
            return CreditResult.skipped(SkipReason.NO_SUBSCRIPTION, reference)

        token_value = token_value_for(service_type)
        tokens = compute_tokens(amount, service_type, tokens_hint)
        if token_value == 0 or tokens <= 0:
            logger.error(
                "Confirmed payment buys no tokens",
                extra={**log_context, "amount": amount, "token_value": token_value},
            )
            return CreditResult.skipped(SkipReason.INVALID_AMOUNT, reference)

        if not amount:
            amount = tokens * token_value

        with transaction.atomic():
            if reference and not _claim_reference(
                reference, user_id, service_type, tokens, amount, method
            ):
                logger.info("Reference already credited", extra=log_context)
                return CreditResult.skipped(SkipReason.ALREADY_PROCESSED, reference)

            token_transaction = TokenTransaction.objects.create(
                subscription=subscription,
                transaction_type=TransactionType.PURCHASE,
                token_amount=tokens,
                token_value=token_value,
                payment_method=method,
                transaction_reference=reference or "",
                status=TransactionStatus.COMPLETED,
            )
            Subscription.objects.filter(pk=subscription.pk).update(
                token_balance=F("token_balance") + tokens,
                updated_at=timezone.now(),
            )

            transaction.on_commit(
                lambda: _announce_credit(
                    user_id=user_id,
                    service_type=service_type,
                    tokens=tokens,
                    amount=amount,
                    reference=reference or str(token_transaction.pk),
                    method=method,
                    transaction_id=str(token_transaction.pk),
                )
            )

    except Exception as e:
        logger.exception(
            "Credit failed",
            extra={**log_context, "error": str(e)},
        )
        return CreditResult.skipped(SkipReason.ERROR, reference, detail=str(e))

    logger.info(
        "Tokens credited",
        extra={**log_context, "tokens": tokens, "amount": amount},
    )
    return CreditResult(
        credited=True,
        reference=reference,
        user_id=user_id,
        service_type=service_type,
        tokens=tokens,
        subscription_id=subscription.pk,
        transaction_id=str(token_transaction.pk),
    )


def _claim_reference(
    reference: str,
    user_id: str,
    service_type: str,
    tokens: int,
    amount: int,
    method: str,
) -> bool:
    """
    Take ownership of a reference for crediting.

    Returns True for exactly one caller per reference. When no attempt was
    recorded (the record failed, or the checkout was started elsewhere) a
    completed attempt is inserted instead; the unique reference constraint
    lets only one concurrent inserter through.
    """
    claimed = PaymentAttempt.objects.transition(
        reference, AttemptStatus.PENDING, AttemptStatus.COMPLETED
    )
    if claimed:
        return True

    if not PaymentAttempt.objects.filter(reference=reference).exists():
        try:
            with transaction.atomic():
                PaymentAttempt.objects.create(
                    reference=reference,
                    user_id=user_id,
                    service_type=service_type,
                    tokens_requested=tokens,
                    amount=amount,
                    method=method,
                    status=AttemptStatus.COMPLETED,
                    completed_at=timezone.now(),
                )
            return True
        except IntegrityError:
            pass

    # A pending attempt may have been recorded after the first UPDATE missed
    return bool(
        PaymentAttempt.objects.transition(
            reference, AttemptStatus.PENDING, AttemptStatus.COMPLETED
        )
    )


def _announce_credit(**kwargs) -> None:
    responses = tokens_credited.send_robust(sender=credit, **kwargs)
    for receiver, response in responses:
        if isinstance(response, Exception):
            logger.error(
                f"tokens_credited receiver failed: {response}",
                extra={"reference": kwargs.get("reference"), "receiver": repr(receiver)},
            )
