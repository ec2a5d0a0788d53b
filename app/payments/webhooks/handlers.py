"""
Webhook processing for provider confirmations.

The view hands every delivery to process_webhook(), which records a
WebhookEvent, normalizes the payload and dispatches it by outcome:

    success -> credit engine
    failure -> attempt marked failed
    other   -> recorded and skipped

Nothing here raises into the view. Providers retry on anything but a 2xx,
and a retry storm would not fix a payload we cannot use.

Usage:
    from payments.webhooks.handlers import process_webhook

    event = process_webhook("orange_money", payload, source_ip="10.0.0.1")
    event.status  # processed / skipped / failed
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from django.db import DatabaseError

from core.services import ServiceResult

from payments.models import WebhookEvent
from payments.services import CreditRequest, SkipReason, credit, mark_attempt_failed
from payments.webhooks.parsers import (
    ConfirmationEvent,
    ConfirmationOutcome,
    PayloadError,
    parse_payload,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


# Maps confirmation outcomes to handler functions
WEBHOOK_HANDLERS: dict[str, Callable[[ConfirmationEvent], ServiceResult]] = {}


def register_handler(outcome: ConfirmationOutcome) -> Callable:
    """
    Decorator to register the handler for a confirmation outcome.

    Handlers return ServiceResult: success with data means the event was
    acted on, success without data means it was deliberately skipped (the
    reason goes in `error`), failure means it could not be processed.
    """

    def decorator(func: Callable[[ConfirmationEvent], ServiceResult]) -> Callable:
        WEBHOOK_HANDLERS[outcome] = func
        return func

    return decorator


def dispatch(event: ConfirmationEvent) -> ServiceResult:
    handler = WEBHOOK_HANDLERS.get(event.outcome)
    if handler is None:
        logger.info(
            f"Ignoring {event.provider} notification with status {event.raw_status!r}",
            extra={"reference": event.reference, "provider": event.provider},
        )
        return ServiceResult.success(None)
    return handler(event)


# =============================================================================
# Outcome Handlers
# =============================================================================


@register_handler(ConfirmationOutcome.SUCCESS)
def handle_success(event: ConfirmationEvent) -> ServiceResult:
    result = credit(
        CreditRequest(
            reference=event.reference,
            amount=event.amount,
            user_id=event.user_id,
            service_type=event.service_type,
            method=event.provider,
        )
    )
    if result.credited:
        return ServiceResult.success(result)
    if result.skip_reason == SkipReason.ERROR:
        return ServiceResult.failure(result.detail or "credit failed", error_code="CREDIT_ERROR")
    return ServiceResult(success=True, data=None, error=result.skip_reason.value)


@register_handler(ConfirmationOutcome.FAILURE)
def handle_failure(event: ConfirmationEvent) -> ServiceResult:
    if not event.reference:
        return ServiceResult(success=True, data=None, error="missing_reference")
    if mark_attempt_failed(event.reference, f"Provider status {event.raw_status}"):
        return ServiceResult.success(event.reference)
    return ServiceResult(success=True, data=None, error="not_pending")


# =============================================================================
# Entry Point
# =============================================================================


def process_webhook(
    provider: str,
    payload: dict[str, Any],
    source_ip: str = "",
) -> WebhookEvent | None:
    """
    Record and process one webhook delivery.

    Returns:
        The saved WebhookEvent, or None if even the audit row could not be
        written. Never raises.
    """
    try:
        webhook_event = WebhookEvent.objects.create(
            provider=provider[:32],
            payload=payload if isinstance(payload, dict) else {"raw": str(payload)[:2000]},
            source_ip=source_ip or "",
        )
    except DatabaseError:
        logger.exception("Could not record webhook", extra={"provider": provider})
        webhook_event = None

    try:
        event = parse_payload(provider, payload)
        if webhook_event is not None:
            webhook_event.reference = (event.reference or "")[:128]

        logger.info(
            f"Received {provider} webhook",
            extra={
                "provider": provider,
                "reference": event.reference,
                "provider_status": event.raw_status,
                "amount": event.amount,
            },
        )
        result = dispatch(event)

        if webhook_event is not None:
            if not result.success:
                webhook_event.mark_failed(result.error or "handler failed")
            elif result.data is None:
                webhook_event.mark_skipped(result.error or f"status {event.raw_status!r}")
            else:
                webhook_event.mark_processed(event.outcome.value)

    except PayloadError as e:
        logger.warning(f"Unusable {provider} webhook: {e}", extra={"provider": provider})
        if webhook_event is not None:
            webhook_event.mark_failed(str(e))
    except Exception as e:
        logger.exception(
            f"Webhook processing error: {type(e).__name__}",
            extra={"provider": provider},
        )
        if webhook_event is not None:
            webhook_event.mark_failed(f"{type(e).__name__}: {e}")

    if webhook_event is not None:
        try:
            webhook_event.save()
        except DatabaseError:
            logger.exception(
                "Could not save webhook outcome",
                extra={"provider": provider, "webhook_event_id": str(webhook_event.id)},
            )
    return webhook_event
