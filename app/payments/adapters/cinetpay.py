"""
CinetPay hosted checkout adapter.

A single JSON call creates a checkout session; the payer is redirected to
the returned payment_url and CinetPay notifies our webhook when done. There
is no status query here: confirmations come from the webhook only.

The transaction id sent to CinetPay is the attempt reference
(TOKENS_<service>_<user>_<epoch ms>), which the webhook parser reads back.

Configuration (via settings):
    - CINETPAY_API_KEY / CINETPAY_SITE_ID: Merchant credentials
    - CINETPAY_NOTIFY_URL: Webhook URL
    - CINETPAY_RETURN_URL: Where the payer lands after checkout
"""

from __future__ import annotations

import logging
import time

from django.conf import settings

from payments.adapters.base import (
    GatewayAdapter,
    InitiatePaymentRequest,
    InitiationResult,
    backoff_delay,
    error_code_from,
    is_retryable_gateway_error,
    require_settings,
    truncate_body,
)
from payments.exceptions import GatewayError, GatewayRequestError
from payments.state_machines import PaymentMethod

logger = logging.getLogger(__name__)

CHECKOUT_URL = "https://api-checkout.cinetpay.com/v2/payment"
CREATED_CODE = "201"

DEFAULT_DESCRIPTION = "Ô Secours token purchase"

# Checkout requires every customer field; used where the buyer gave none
DEFAULT_CUSTOMER = {
    "customer_name": "Client",
    "customer_surname": "Ô Secours",
    "customer_email": "",
    "customer_phone_number": "",
    "customer_address": "Bamako",
    "customer_city": "Bamako",
    "customer_country": "ML",
    "customer_state": "ML",
    "customer_zip_code": "00000",
}


class CinetPayAdapter(GatewayAdapter):
    """Adapter for CinetPay checkout v2."""

    provider = PaymentMethod.CINETPAY

    def build_payload(self, request: InitiatePaymentRequest, config: dict[str, str]) -> dict:
        customer = request.customer
        provided = {
            "customer_name": customer.name,
            "customer_surname": customer.surname,
            "customer_email": customer.email,
            "customer_phone_number": customer.phone or request.phone or "",
            "customer_address": customer.address,
            "customer_city": customer.city,
            "customer_country": customer.country,
            "customer_state": customer.state,
            "customer_zip_code": customer.zip_code,
        }
        return {
            "apikey": config["CINETPAY_API_KEY"],
            "site_id": config["CINETPAY_SITE_ID"],
            "transaction_id": request.reference,
            "amount": request.amount,
            "currency": request.currency,
            "description": request.description or DEFAULT_DESCRIPTION,
            "notify_url": config["CINETPAY_NOTIFY_URL"],
            "return_url": config["CINETPAY_RETURN_URL"],
            "channels": "ALL",
            "lang": "FR",
            "customer_id": request.user_id or "",
            **{key: value or DEFAULT_CUSTOMER[key] for key, value in provided.items()},
        }

    def initiate(self, request: InitiatePaymentRequest) -> InitiationResult:
        """
        Create a CinetPay checkout session.

        Timeouts and connection failures are retried with exponential
        backoff, up to PAYMENT_GATEWAY_MAX_RETRIES attempts in total. Any
        answer from CinetPay ends the loop.

        Returns:
            InitiationResult; success only when code is "201" and a
            payment_url is present

        Raises:
            ConfigurationError: Credentials or URLs missing
            GatewayRequestError: Non-JSON answer, or non-2xx without a code
            NetworkError: Still unreachable after the last retry
        """
        config = require_settings(
            self.provider,
            "CINETPAY_API_KEY",
            "CINETPAY_SITE_ID",
            "CINETPAY_NOTIFY_URL",
            "CINETPAY_RETURN_URL",
        )
        payload = self.build_payload(request, config)
        log_context = {
            "operation": "cinetpay.initiate",
            "provider": self.provider,
            "reference": request.reference,
            "amount": request.amount,
        }

        max_attempts = max(1, settings.PAYMENT_GATEWAY_MAX_RETRIES)
        for attempt in range(max_attempts):
            try:
                response = self._send(
                    "POST",
                    CHECKOUT_URL,
                    {**log_context, "attempt": attempt + 1},
                    headers={
                        "Content-Type": "application/json",
                        "Accept": "application/json",
                    },
                    json=payload,
                )
                break
            except GatewayError as e:
                if not is_retryable_gateway_error(e) or attempt + 1 >= max_attempts:
                    raise
                delay = backoff_delay(attempt)
                logger.warning(
                    f"CinetPay unreachable, retrying in {delay:.1f}s",
                    extra={**log_context, "attempt": attempt + 1},
                )
                time.sleep(delay)

        body = self._json(response)
        data = body.get("data")
        if not isinstance(data, dict):
            data = {}
        code = str(body.get("code") or "")

        if code == CREATED_CODE and data.get("payment_url"):
            return InitiationResult(
                success=True,
                provider=self.provider,
                reference=request.reference,
                payment_url=data["payment_url"],
                pay_token=data.get("payment_token") or request.reference,
                message="Paiement initié",
                raw_response=body,
            )

        if not response.ok and not code:
            raise GatewayRequestError(
                "CinetPay payment request failed",
                provider=self.provider,
                provider_code=error_code_from(response, "code", "status"),
                status_code=response.status_code,
                raw_response=truncate_body(response.text),
            )

        message = body.get("message") or body.get("description") or "Échec de l'initialisation CinetPay"
        logger.warning(
            "CinetPay refused checkout",
            extra={**log_context, "provider_code": code, "provider_message": message},
        )
        return InitiationResult(
            success=False,
            provider=self.provider,
            reference=request.reference,
            message=message,
            error_code=code or None,
            raw_response=body,
        )
