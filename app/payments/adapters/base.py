"""
Shared contract and HTTP plumbing for payment gateway adapters.

Every provider adapter turns an InitiatePaymentRequest into an
InitiationResult. Provider JSON never leaves the adapter except inside the
`raw_response` diagnostics field.

Error policy:
    - Provider declines (bad number, insufficient balance) are returned as
      InitiationResult(success=False, message=...), never raised.
    - Token exchange failures raise GatewayAuthError.
    - Unusable provider responses raise GatewayRequestError.
    - Timeouts/connection failures raise NetworkError, the only retryable one.
    - Missing settings raise ConfigurationError.

Usage:
    from payments.adapters import get_adapter, InitiatePaymentRequest

    adapter = get_adapter("sama_money")
    result = adapter.initiate(InitiatePaymentRequest(
        reference="TOKENS_auto_U1_1700000000",
        amount=7500,
        service_type="auto",
        user_id="U1",
        phone="+22376123456",
    ))
"""

from __future__ import annotations

import logging
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import requests
from django.conf import settings

from payments.exceptions import (
    ConfigurationError,
    GatewayError,
    GatewayRequestError,
    NetworkError,
)
from payments.pricing import CURRENCY
from payments.state_machines import AttemptStatus

if TYPE_CHECKING:
    from requests import Response

# Provider bodies attached to errors and logs are cut to this many characters
RAW_BODY_LIMIT = 2000


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CustomerProfile:
    """
    Buyer details some providers require on the hosted checkout.

    Attributes:
        name / surname: Buyer names
        email / phone: Contact details
        address / city / country / state / zip_code: Billing address
    """

    name: str = ""
    surname: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    country: str = ""
    state: str = ""
    zip_code: str = ""


@dataclass
class InitiatePaymentRequest:
    """
    Provider-agnostic request to start a payment.

    Attributes:
        reference: Idempotency key, sent to the provider as order id
        amount: Amount in FCFA
        service_type: Token class being bought
        user_id: Buyer
        tokens: Requested token count
        phone: Payer mobile number (required by SAMA Money)
        currency: ISO 4217 currency code
        description: Text shown to the payer
        customer: Buyer profile (used by CinetPay)
        metadata: Extra caller data, echoed into the attempt payload
    """

    reference: str
    amount: int
    service_type: str | None = None
    user_id: str | None = None
    tokens: int | None = None
    phone: str | None = None
    currency: str = CURRENCY
    description: str | None = None
    customer: CustomerProfile = field(default_factory=CustomerProfile)
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.reference:
            raise ValueError("reference is required")
        if self.amount is None or self.amount <= 0:
            raise ValueError("amount must be positive")
        if not self.currency:
            raise ValueError("currency is required")


@dataclass
class InitiationResult:
    """
    Normalized outcome of a payment initiation.

    A successful result means a checkout session exists at the provider,
    not that money moved. Tokens are only credited on confirmation.

    Attributes:
        success: Whether the provider accepted the request
        provider: PaymentMethod value
        reference: Request reference
        payment_url: Redirect URL for hosted checkouts
        pay_token: Provider payment token/id, used for status checks
        message: User-facing message (localized on failure)
        error_code: Provider error code on failure
        raw_response: Provider body for diagnostics
    """

    success: bool
    provider: str
    reference: str
    payment_url: str | None = None
    pay_token: str | None = None
    message: str = ""
    error_code: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class VerificationResult:
    """
    Normalized provider answer to a status query.

    Attributes:
        provider: PaymentMethod value
        reference: Attempt reference
        status: AttemptStatus value (pending, completed or failed)
        amount: Amount the provider reports, if any
        raw_response: Provider body for diagnostics
    """

    provider: str
    reference: str
    status: str
    amount: int | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)

    @property
    def is_completed(self) -> bool:
        return self.status == AttemptStatus.COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.status == AttemptStatus.FAILED


# =============================================================================
# Helper Functions
# =============================================================================


def is_retryable_gateway_error(error: Exception) -> bool:
    """
    Check if a gateway error may be retried.

    Only network-level failures qualify. A provider that answered, even with
    a rejection, must not be asked again with the same order id.
    """
    if isinstance(error, GatewayError):
        return getattr(error, "is_retryable", False)
    return False


def backoff_delay(attempt: int, base: float = 1.0, max_delay: float = 60.0) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Args:
        attempt: Current attempt number (0-indexed)
        base: Base delay in seconds
        max_delay: Maximum delay in seconds

    Returns:
        Delay in seconds with 0-25% jitter
    """
    delay = min(base * (2**attempt), max_delay)
    jitter = delay * random.uniform(0, 0.25)
    return delay + jitter


def require_settings(provider: str, *names: str) -> dict[str, str]:
    """
    Read provider settings, failing if any is empty.

    Raises:
        ConfigurationError: Listing every missing setting name
    """
    values = {name: getattr(settings, name, "") for name in names}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(
            f"{provider} is not configured",
            details={"provider": provider, "missing": missing},
        )
    return values


def coerce_amount(value: Any) -> int | None:
    """
    Read a provider amount ("7500", 7500, "7500.00") as whole FCFA.

    Returns None for missing or unparseable values.
    """
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def truncate_body(text: str | None) -> str:
    if not text:
        return ""
    return text[:RAW_BODY_LIMIT]


def error_code_from(response: Response, *keys: str) -> str | None:
    """
    Pull a provider error code out of an error response body.

    Returns None when the body is not a JSON object or carries none of `keys`.
    """
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for key in keys:
        value = body.get(key)
        if value not in (None, ""):
            return str(value)
    return None


# =============================================================================
# Adapter Base Class
# =============================================================================


class GatewayAdapter(ABC):
    """
    Base class for provider adapters.

    Subclasses set `provider` and implement initiate(); providers with a
    status endpoint also implement verify() and set supports_verification.
    """

    provider: str = ""
    supports_verification: bool = False

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @property
    def timeout(self) -> int:
        return settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS

    @abstractmethod
    def initiate(self, request: InitiatePaymentRequest) -> InitiationResult:
        """Start a payment at the provider."""

    def verify(self, reference: str, payment_id: str | None = None) -> VerificationResult:
        """
        Ask the provider for the status of a payment.

        Args:
            reference: Attempt reference
            payment_id: Provider payment id/token, where it differs
        """
        raise NotImplementedError(f"{self.provider} has no status endpoint")

    # -------------------------------------------------------------------------
    # HTTP plumbing
    # -------------------------------------------------------------------------

    def _send(
        self,
        method: str,
        url: str,
        log_context: dict[str, Any],
        **kwargs,
    ) -> Response:
        """
        Perform an HTTP call with the configured timeout.

        Transport failures become NetworkError; the response is returned
        whatever its status so callers can apply provider rules.
        """
        logger = self.get_logger()
        start_time = time.time()
        logger.info("Starting gateway call", extra=log_context)

        try:
            response = requests.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.Timeout, requests.ConnectionError) as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                f"Gateway call failed: {type(e).__name__}",
                extra={**log_context, "duration_ms": duration_ms},
            )
            raise NetworkError(
                f"{self.provider} unreachable: {type(e).__name__}",
                provider=self.provider,
            ) from e
        except requests.RequestException as e:
            logger.error(
                "Gateway request could not be sent",
                extra={**log_context, "error": str(e)},
            )
            raise GatewayRequestError(
                f"{self.provider} request error: {e}",
                provider=self.provider,
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Gateway call completed",
            extra={
                **log_context,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response

    def _json(
        self,
        response: Response,
        error_class: type[GatewayError] = GatewayRequestError,
    ) -> dict[str, Any]:
        """
        Decode a JSON object body.

        Raises:
            error_class: If the body is not a JSON object (e.g. an HTML error page)
        """
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise error_class(
                f"{self.provider} returned a non-JSON response",
                provider=self.provider,
                status_code=response.status_code,
                raw_response=truncate_body(response.text),
            )
        return body
