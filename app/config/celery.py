"""
Celery configuration for the token purchase service.

Celery runs work that must not hold up a provider webhook or a checkout
request:
- Posting referral commissions after tokens are credited
- Periodically polling providers for attempts still pending

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps.

Usage:
    from referrals.tasks import post_referral_commission

    post_referral_commission.delay(user_id, amount, reference)
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
