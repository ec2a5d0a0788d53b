"""
Payments app configuration.

This app provides the token purchase pipeline:
- Provider adapters (Orange Money, SAMA Money, CinetPay)
- Payment attempts and confirmation webhooks
- Per-service token balances with an append-only transaction log
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
