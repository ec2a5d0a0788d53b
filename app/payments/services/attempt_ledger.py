"""
Attempt ledger: persistence of initiated payments.

Recording is best-effort. By the time an attempt is recorded the provider
already holds a checkout session, so a database failure here is logged and
swallowed: the buyer still gets their payment URL, and the confirmation can
still be credited from the identity carried in the reference (CinetPay) or
the webhook payload.

Usage:
    from payments.services.attempt_ledger import record_attempt, resolve_attempt

    record_attempt(AttemptParams(reference="R1", amount=5000, method="orange_money"))
    resolved = resolve_attempt("R1")
    if resolved.found:
        print(resolved.user_id, resolved.service_type)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from django.db import DatabaseError

from payments.models import PaymentAttempt
from payments.state_machines import AttemptStatus

logger = logging.getLogger(__name__)


@dataclass
class AttemptParams:
    """
    Fields of a new PaymentAttempt.

    Attributes:
        reference: Idempotency key shared with the provider
        amount: Amount in FCFA
        method: PaymentMethod value
        user_id / service_type / tokens: Buyer identity and purchase
        gateway_payload: Provider initiation response
    """

    reference: str
    amount: int
    method: str
    user_id: str | None = None
    service_type: str | None = None
    tokens: int | None = None
    gateway_payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedAttempt:
    """What the ledger knows about a reference."""

    found: bool
    user_id: str | None = None
    service_type: str | None = None
    tokens: int | None = None
    amount: int | None = None
    method: str | None = None
    status: str | None = None

    @classmethod
    def not_found(cls) -> ResolvedAttempt:
        return cls(found=False)


def record_attempt(params: AttemptParams) -> PaymentAttempt | None:
    """
    Insert a pending attempt for a reference.

    Never raises. A reference that already exists (a client retrying with
    the same idempotency key) returns the existing row untouched.

    Returns:
        The attempt, or None if it could not be persisted
    """
    try:
        attempt, created = PaymentAttempt.objects.get_or_create(
            reference=params.reference,
            defaults={
                "amount": params.amount,
                "method": params.method,
                "user_id": params.user_id,
                "service_type": params.service_type,
                "tokens_requested": params.tokens,
                "gateway_payload": params.gateway_payload,
            },
        )
    except DatabaseError:
        logger.exception(
            "Failed to record payment attempt",
            extra={"reference": params.reference, "method": params.method},
        )
        return None

    if not created:
        logger.info(
            "Payment attempt already recorded",
            extra={"reference": params.reference, "status": attempt.status},
        )
    return attempt


def resolve_attempt(reference: str | None) -> ResolvedAttempt:
    """
    Look up the most recent attempt for a reference.

    Used to fill in what a confirmation leaves out. Lookup errors are logged
    and reported as not found.
    """
    if not reference:
        return ResolvedAttempt.not_found()

    try:
        attempt = PaymentAttempt.objects.latest_for_reference(reference)
    except DatabaseError:
        logger.exception("Attempt lookup failed", extra={"reference": reference})
        return ResolvedAttempt.not_found()

    if attempt is None:
        return ResolvedAttempt.not_found()

    return ResolvedAttempt(
        found=True,
        user_id=attempt.user_id,
        service_type=attempt.service_type,
        tokens=attempt.tokens_requested,
        amount=attempt.amount,
        method=attempt.method,
        status=attempt.status,
    )


def mark_attempt_failed(reference: str, reason: str = "") -> bool:
    """
    Move a pending attempt to failed.

    Completed attempts are left alone: a late failure notice cannot undo a
    credit.

    Returns:
        True if the attempt was pending and is now failed
    """
    updated = PaymentAttempt.objects.transition(
        reference,
        AttemptStatus.PENDING,
        AttemptStatus.FAILED,
        failure_reason=reason[:1000],
    )
    if updated:
        logger.info(
            "Payment attempt marked failed",
            extra={"reference": reference, "reason": reason},
        )
    return bool(updated)
