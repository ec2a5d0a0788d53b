"""
Payment-specific exceptions for gateway and reconciliation operations.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── PaymentValidationError - Bad purchase request (limits, phone, amount)
    ├── ConfigurationError - Missing provider credentials/URLs
    └── GatewayError - Base for provider failures
        ├── GatewayAuthError - Credential/token exchange failed
        ├── GatewayRequestError - Provider rejected or garbled the request
        └── NetworkError - Timeout or connection failure (retryable)

A provider declining a payment (insufficient balance, unknown number) is not
an exception: adapters return InitiationResult(success=False). The classes
here are for conditions the adapter cannot turn into a result.

Reconciliation outcomes that are not errors (duplicate delivery, unknown
user) are expressed as SkipReason values on CreditResult, see
payments.services.credit_engine.

Usage:
    from payments.exceptions import GatewayAuthError, NetworkError

    try:
        result = adapter.initiate(request)
    except NetworkError as e:
        if attempt < max_retries:
            time.sleep(backoff_delay(attempt))
    except GatewayError as e:
        return Response(e.to_dict(), status=502)
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from typing import Any

# Provider bodies written to log records are cut to this many characters
LOGGED_BODY_LIMIT = 500


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """Base exception for all payment operations."""

    default_error_code: str = "PAYMENT_ERROR"


class PaymentValidationError(PaymentError):
    """
    Raised when a purchase request fails validation.

    Example:
        raise PaymentValidationError(
            "Numéro de téléphone invalide",
            error_code="INVALID_PHONE",
            details={"phone": mask_phone(phone)},
        )
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


class ConfigurationError(PaymentError):
    """
    Raised when a provider is called without the settings it needs.

    Fatal for the request: views answer 500 since nothing the caller does
    will fix it.
    """

    default_error_code: str = "CONFIGURATION_ERROR"


# =============================================================================
# Gateway Exceptions
# =============================================================================


class GatewayError(PaymentError):
    """
    Base exception for provider-side failures.

    Attributes:
        provider: PaymentMethod value of the provider involved
        status_code: HTTP status returned by the provider, if any
        raw_response: Provider body (truncated) for diagnostics
        is_retryable: Whether the caller may retry the same request
    """

    default_error_code: str = "GATEWAY_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        provider: str | None = None,
        status_code: int | None = None,
        raw_response: Any = None,
    ):
        details = dict(details or {})
        if provider:
            details.setdefault("provider", provider)
        if status_code is not None:
            details.setdefault("status_code", status_code)
        super().__init__(message, error_code, details)
        self.provider = provider
        self.status_code = status_code
        self.raw_response = raw_response

    def log_context(self) -> dict[str, Any]:
        """Provider diagnostics for a log record's `extra`."""
        body = self.raw_response
        if isinstance(body, (dict, list)):
            body = json.dumps(body, default=str, ensure_ascii=False)
        context: dict[str, Any] = {"raw_response": str(body or "")[:LOGGED_BODY_LIMIT]}
        provider_code = getattr(self, "provider_code", None)
        if provider_code is not None:
            context["provider_code"] = provider_code
        return context


class GatewayAuthError(GatewayError):
    """
    Raised when obtaining a provider session/access token fails.

    Covers non-2xx token responses and auth responses whose status field
    is not the provider's success sentinel.
    """

    default_error_code: str = "GATEWAY_AUTH_ERROR"


class GatewayRequestError(GatewayError):
    """
    Raised when a provider call returns an unusable response.

    Attributes:
        provider_code: Provider-specific error code, if the body had one
    """

    default_error_code: str = "GATEWAY_REQUEST_ERROR"

    def __init__(self, message: str, provider_code: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.provider_code = provider_code
        if provider_code is not None:
            self.details.setdefault("provider_code", provider_code)


class NetworkError(GatewayError):
    """
    Raised on timeouts and connection failures.

    The only gateway error a caller should retry. A timeout on initiation is
    ambiguous (the provider may have received the request), which is why
    confirmations are reconciled independently of the initiating call.
    """

    default_error_code: str = "GATEWAY_NETWORK_ERROR"
    is_retryable: bool = True


def gateway_log_context(error: Exception) -> dict[str, Any]:
    """Diagnostics to log alongside any caught error; empty unless it came from a provider."""
    if isinstance(error, GatewayError):
        return error.log_context()
    return {}
