"""
Django app configuration for referrals.
"""

from django.apps import AppConfig


class ReferralsConfig(AppConfig):
    """Configuration for the referrals application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "referrals"
    verbose_name = "Referrals"

    def ready(self):
        """
        Import signals when the app is ready.

        Connects the commission receiver to payments.signals.tokens_credited.
        """
        from referrals import signals  # noqa: F401
