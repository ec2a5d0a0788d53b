"""
Celery tasks for referral commissions.

Usage:
    from referrals.tasks import post_referral_commission

    # Queued by referrals.signals after a token credit commits
    post_referral_commission.delay(user_id="U2", amount=10000, reference="R1")
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.db import DatabaseError

from referrals.services import CommissionService

logger = logging.getLogger(__name__)

MAX_POSTING_RETRIES = 5


@shared_task(
    bind=True,
    autoretry_for=(DatabaseError,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_kwargs={"max_retries": MAX_POSTING_RETRIES},
    acks_late=True,
)
def post_referral_commission(self, user_id: str, amount, reference: str = "") -> dict:
    """
    Post the commission for a credited payment.

    Safe to retry: a commission already posted for the same reference is
    skipped by the unique (referral, payment_reference) constraint.

    Returns:
        Dict with the posted commission id, or None when nothing was owed
    """
    result = CommissionService.process_commission(user_id, amount, reference=reference)
    if not result.success:
        logger.error(
            f"Commission posting failed: {result.error}",
            extra={"user_id": user_id, "reference": reference},
        )
        return {"reference": reference, "commission_id": None, "error": result.error}

    commission = result.data
    return {
        "reference": reference,
        "commission_id": str(commission.id) if commission else None,
    }
