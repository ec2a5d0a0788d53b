"""
Webhook endpoint view for payment providers.

One endpoint serves every provider, selected by the URL segment:

    POST /api/v1/payments/webhook/<provider>/

The response is always 200 {"success": true}, whatever the payload and
whatever processing concluded. The outcome lives in the WebhookEvent row.

Usage:
    # In urls.py
    from payments.webhooks.views import provider_webhook

    urlpatterns = [
        path("webhook/<str:provider>/", provider_webhook, name="provider_webhook"),
    ]
"""

from __future__ import annotations

import json
import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.helpers import get_client_ip

from payments.adapters import normalize_provider
from payments.webhooks.handlers import process_webhook

logger = logging.getLogger(__name__)


def read_payload(request: HttpRequest):
    """
    Decode a webhook body.

    JSON bodies are decoded as such; anything else is read as form data
    (CinetPay posts application/x-www-form-urlencoded). A body that claims
    to be JSON but is not is returned as its raw text.
    """
    if request.content_type == "application/json":
        try:
            return json.loads(request.body or b"{}")
        except (ValueError, UnicodeDecodeError):
            return request.body.decode("utf-8", errors="replace")
    return request.POST.dict()


@csrf_exempt
@require_POST
def provider_webhook(request: HttpRequest, provider: str) -> JsonResponse:
    """
    Receive a provider payment notification.

    Providers redeliver on anything but a 2xx, so this view acknowledges
    every delivery, including unknown providers and malformed bodies.
    Duplicate deliveries are harmless: the credit engine credits a reference
    at most once.
    """
    name = normalize_provider(provider) or provider
    source_ip = get_client_ip(request)

    try:
        payload = read_payload(request)
        process_webhook(name, payload, source_ip=source_ip)
    except Exception as e:
        logger.exception(
            f"Unexpected webhook error: {type(e).__name__}",
            extra={"provider": name, "source_ip": source_ip},
        )

    return JsonResponse({"success": True})
