"""
Webhook handling for provider payment confirmations.

Payloads are parsed into ConfirmationEvent, recorded as WebhookEvent rows
and dispatched synchronously to the credit engine.

Usage:
    # In urls.py
    from payments.webhooks.views import provider_webhook

    urlpatterns = [
        path("webhook/<str:provider>/", provider_webhook, name="provider_webhook"),
    ]
"""

from payments.webhooks.handlers import dispatch, process_webhook, register_handler
from payments.webhooks.parsers import ConfirmationEvent, ConfirmationOutcome, parse_payload
from payments.webhooks.views import provider_webhook

__all__ = [
    "ConfirmationEvent",
    "ConfirmationOutcome",
    "dispatch",
    "parse_payload",
    "process_webhook",
    "provider_webhook",
    "register_handler",
]
