"""
Django signal receivers for referrals.

Related files:
    - payments/signals.py: tokens_credited definition
    - apps.py: Signal import in ready()
    - tasks.py: post_referral_commission

Usage:
    Receivers are automatically connected when the app is ready.
"""

import logging

from django.dispatch import receiver

from payments.signals import tokens_credited

from referrals.models import Member

logger = logging.getLogger(__name__)


@receiver(tokens_credited)
def queue_referral_commission(sender, user_id, amount, reference, **kwargs):
    """
    Queue commission posting for a credited purchase.

    tokens_credited is sent once the credit has committed, so the commission
    is posted in its own transaction and a failure there never undoes the
    credit. Members without a referrer are filtered out here to spare the
    broker a round trip.
    """
    referred = Member.objects.filter(user_id=user_id, referred_by__isnull=False).exclude(
        referred_by=""
    )
    if not referred.exists():
        return

    from referrals.tasks import post_referral_commission

    post_referral_commission.delay(user_id=user_id, amount=amount, reference=reference)
    logger.debug(
        "Queued referral commission",
        extra={"user_id": user_id, "reference": reference},
    )
