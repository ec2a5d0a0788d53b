"""
Celery tasks for payment reconciliation.

This module provides async tasks for:
- Polling providers for attempts whose webhook never arrived
- Verifying a single reference in the background

Usage:
    from payments.tasks import verify_attempt

    verify_attempt.delay("TOKENS_auto_U1_1700000000000")

    # Poll all stale pending attempts (typically via celery-beat)
    from payments.tasks import reconcile_pending_attempts
    reconcile_pending_attempts.delay()
"""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from payments.adapters import ADAPTERS
from payments.exceptions import NetworkError
from payments.models import PaymentAttempt
from payments.services import VerificationService

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MAX_VERIFY_RETRIES = 3


# =============================================================================
# Reconciliation Tasks
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(NetworkError,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_VERIFY_RETRIES},
    acks_late=True,
)
def verify_attempt(self, reference: str) -> dict:
    """
    Verify one attempt against its provider.

    Network failures are retried with backoff; other gateway errors are
    reported in the result and left for the next reconciliation run.

    Returns:
        Dict with the reference and resulting status or error code
    """
    result = VerificationService.verify(reference)
    if not result.success:
        if result.error_code == NetworkError.default_error_code:
            raise NetworkError(result.error or "Provider unreachable")
        return {"reference": reference, "status": "error", "error_code": result.error_code}

    outcome = result.data
    return {
        "reference": reference,
        "status": outcome.status,
        "credited": bool(outcome.credit and outcome.credit.credited),
    }


@shared_task
def reconcile_pending_attempts() -> dict:
    """
    Poll providers for attempts pending longer than the reconciliation delay.

    Only providers with a status endpoint are polled. Each attempt is
    verified in its own task so one slow provider does not hold up the
    batch.

    Schedule: every 10 minutes (see migration 0002_reconcile_pending_schedule)

    Returns:
        Dict with the number of attempts queued
    """
    cutoff = timezone.now() - timedelta(minutes=settings.PAYMENTS_RECONCILE_AFTER_MINUTES)
    methods = [name for name, adapter in ADAPTERS.items() if adapter.supports_verification]

    references = list(
        PaymentAttempt.objects.stale_pending(cutoff, methods=methods).values_list(
            "reference", flat=True
        )[: settings.PAYMENTS_RECONCILE_BATCH_SIZE]
    )

    for reference in references:
        verify_attempt.delay(reference)

    if references:
        logger.info(
            f"Queued verification for {len(references)} pending attempts",
            extra={"cutoff": cutoff.isoformat(), "methods": methods},
        )
    return {"queued": len(references)}
