"""
Payment services for token purchases.

This module provides:
- PaymentOrchestrator: Entry point for payment initiation
- VerificationService: Status checks against providers or the ledger
- credit(): The only code path that adds tokens to a subscription
- record_attempt() / resolve_attempt() / mark_attempt_failed(): Attempt ledger

Usage:
    from payments.services import PaymentOrchestrator, InitiatePaymentParams

    result = PaymentOrchestrator.initiate(
        InitiatePaymentParams(
            provider="sama_money",
            user_id="U1",
            service_type="motors",
            tokens=20,
            amount=5000,
            phone="76123456",
        )
    )

    # Apply a provider confirmation
    from payments.services import CreditRequest, credit

    outcome = credit(CreditRequest(reference="R1", amount=5000, method="orange_money"))
"""

from payments.services.attempt_ledger import (
    AttemptParams,
    ResolvedAttempt,
    mark_attempt_failed,
    record_attempt,
    resolve_attempt,
)
from payments.services.credit_engine import (
    CreditRequest,
    CreditResult,
    SkipReason,
    credit,
)
from payments.services.payment_orchestrator import (
    InitiatePaymentParams,
    PaymentOrchestrator,
)
from payments.services.verification_service import (
    VerificationOutcome,
    VerificationService,
)

__all__ = [
    "AttemptParams",
    "CreditRequest",
    "CreditResult",
    "InitiatePaymentParams",
    "PaymentOrchestrator",
    "ResolvedAttempt",
    "SkipReason",
    "VerificationOutcome",
    "VerificationService",
    "credit",
    "mark_attempt_failed",
    "record_attempt",
    "resolve_attempt",
]
