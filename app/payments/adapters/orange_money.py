"""
Orange Money web payment adapter.

Two-legged flow:
    1. Exchange the merchant's basic-auth credentials for a bearer token
       (OAuth client_credentials grant). The token is cached until five
       minutes before it expires.
    2. Create a web payment with the merchant key; Orange answers with a
       payment_url to redirect the payer to and a pay_token.

Sandbox and production differ in base URL and currency code: the sandbox
only accepts the test currency "OUV".

Configuration (via settings):
    - ORANGE_BASIC_AUTH: base64 client_id:client_secret
    - ORANGE_MERCHANT_KEY: Merchant key
    - ORANGE_ENV: "prod"/"production" for live, anything else is sandbox
    - ORANGE_RETURN_URL / ORANGE_CANCEL_URL / ORANGE_NOTIF_URL
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.cache import cache

from core.helpers import mask_secret

from payments.adapters.base import (
    GatewayAdapter,
    InitiatePaymentRequest,
    InitiationResult,
    VerificationResult,
    coerce_amount,
    error_code_from,
    require_settings,
    truncate_body,
)
from payments.exceptions import GatewayAuthError, GatewayRequestError
from payments.state_machines import AttemptStatus, PaymentMethod

logger = logging.getLogger(__name__)


class OrangeMoneyAdapter(GatewayAdapter):
    """Adapter for the Orange Money web payment API."""

    provider = PaymentMethod.ORANGE_MONEY
    supports_verification = True

    TOKEN_URL = "https://api.orange.com/oauth/v3/token"
    PRODUCTION_BASE_URL = "https://api.orange.com/orange-money-webpay/v1"
    SANDBOX_BASE_URL = "https://api.orange.com/orange-money-webpay/dev/v1"

    TOKEN_CACHE_KEY = "payments:orange_money:access_token"
    TOKEN_EXPIRY_MARGIN_SECONDS = 300
    DEFAULT_TOKEN_LIFETIME_SECONDS = 3600

    COMPLETED_STATUSES = frozenset({"completed", "success", "successful"})
    FAILED_STATUSES = frozenset({"failed", "cancelled", "canceled", "expired"})

    # =========================================================================
    # Environment
    # =========================================================================

    @property
    def is_production(self) -> bool:
        return (settings.ORANGE_ENV or "").lower() in ("prod", "production")

    @property
    def base_url(self) -> str:
        return self.PRODUCTION_BASE_URL if self.is_production else self.SANDBOX_BASE_URL

    @property
    def currency(self) -> str:
        return "XOF" if self.is_production else "OUV"

    # =========================================================================
    # Authentication
    # =========================================================================

    def get_access_token(self) -> str:
        """
        Return a bearer token, from cache when still valid.

        Raises:
            ConfigurationError: ORANGE_BASIC_AUTH missing
            GatewayAuthError: Token endpoint rejected the credentials
            NetworkError: Token endpoint unreachable
        """
        cached = cache.get(self.TOKEN_CACHE_KEY)
        if cached:
            return cached

        config = require_settings(self.provider, "ORANGE_BASIC_AUTH", "ORANGE_MERCHANT_KEY")
        log_context = {
            "operation": "orange_money.get_access_token",
            "provider": self.provider,
        }

        response = self._send(
            "POST",
            self.TOKEN_URL,
            log_context,
            headers={
                "Authorization": f"Basic {config['ORANGE_BASIC_AUTH']}",
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": "application/json",
                "X-Merchant-Key": config["ORANGE_MERCHANT_KEY"],
            },
            data={"grant_type": "client_credentials"},
        )

        if not response.ok:
            logger.error(
                "Orange Money token request rejected",
                extra={**log_context, "status_code": response.status_code},
            )
            raise GatewayAuthError(
                "Orange Money authentication failed",
                provider=self.provider,
                status_code=response.status_code,
                raw_response=truncate_body(response.text),
            )

        body = self._json(response, GatewayAuthError)
        token = body.get("access_token")
        if not token:
            raise GatewayAuthError(
                "Orange Money token response had no access_token",
                provider=self.provider,
                status_code=response.status_code,
                raw_response=body,
            )

        try:
            expires_in = int(body.get("expires_in") or self.DEFAULT_TOKEN_LIFETIME_SECONDS)
        except (TypeError, ValueError):
            expires_in = self.DEFAULT_TOKEN_LIFETIME_SECONDS
        ttl = expires_in - self.TOKEN_EXPIRY_MARGIN_SECONDS
        if ttl > 0:
            cache.set(self.TOKEN_CACHE_KEY, token, timeout=ttl)

        logger.info(
            "Orange Money token acquired",
            extra={**log_context, "token": mask_secret(token), "expires_in": expires_in},
        )
        return token

    def invalidate_token(self) -> None:
        cache.delete(self.TOKEN_CACHE_KEY)

    # =========================================================================
    # Operations
    # =========================================================================

    def initiate(self, request: InitiatePaymentRequest) -> InitiationResult:
        """
        Create an Orange Money web payment.

        Returns:
            InitiationResult with payment_url and pay_token on success

        Raises:
            ConfigurationError: Merchant key or callback URLs missing
            GatewayAuthError: Token exchange failed
            GatewayRequestError: Web payment endpoint answered non-2xx
            NetworkError: Provider unreachable
        """
        config = require_settings(
            self.provider,
            "ORANGE_MERCHANT_KEY",
            "ORANGE_RETURN_URL",
            "ORANGE_CANCEL_URL",
            "ORANGE_NOTIF_URL",
        )
        token = self.get_access_token()

        payload = {
            "merchant_key": config["ORANGE_MERCHANT_KEY"],
            "currency": self.currency,
            "order_id": request.reference,
            "amount": str(request.amount),
            "return_url": config["ORANGE_RETURN_URL"],
            "cancel_url": config["ORANGE_CANCEL_URL"],
            "notif_url": config["ORANGE_NOTIF_URL"],
            "lang": "fr",
            "reference": request.reference,
        }
        log_context = {
            "operation": "orange_money.initiate",
            "provider": self.provider,
            "reference": request.reference,
            "amount": request.amount,
            "currency": self.currency,
            "token": mask_secret(token),
        }

        response = self._send(
            "POST",
            f"{self.base_url}/webpayment",
            log_context,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
                "X-Merchant-Key": config["ORANGE_MERCHANT_KEY"],
            },
            json=payload,
        )

        if response.status_code == 401:
            # Revoked before its advertised expiry; next call fetches a new one
            self.invalidate_token()
            raise GatewayAuthError(
                "Orange Money rejected the access token",
                provider=self.provider,
                status_code=response.status_code,
                raw_response=truncate_body(response.text),
            )

        if not response.ok:
            logger.error(
                "Orange Money web payment rejected",
                extra={**log_context, "status_code": response.status_code},
            )
            raise GatewayRequestError(
                "Orange Money payment request failed",
                provider=self.provider,
                provider_code=error_code_from(response, "code"),
                status_code=response.status_code,
                raw_response=truncate_body(response.text),
            )

        body = self._json(response)
        payment_url = body.get("payment_url")
        if not payment_url:
            message = body.get("message") or "Orange Money did not return a payment URL"
            logger.warning(
                "Orange Money response without payment_url",
                extra={**log_context, "provider_message": message},
            )
            return InitiationResult(
                success=False,
                provider=self.provider,
                reference=request.reference,
                message=message,
                error_code=str(body.get("code") or body.get("status") or "") or None,
                raw_response=body,
            )

        return InitiationResult(
            success=True,
            provider=self.provider,
            reference=request.reference,
            payment_url=payment_url,
            pay_token=body.get("pay_token"),
            message="Paiement initié",
            raw_response=body,
        )

    def verify(self, reference: str, payment_id: str | None = None) -> VerificationResult:
        """
        Query the status of a web payment.

        `completed`/`success` map to completed, `failed`/`cancelled`/`expired`
        to failed, anything else (INITIATED, PENDING) to pending.
        """
        config = require_settings(self.provider, "ORANGE_MERCHANT_KEY")
        token = self.get_access_token()
        lookup_id = payment_id or reference
        log_context = {
            "operation": "orange_money.verify",
            "provider": self.provider,
            "reference": reference,
        }

        response = self._send(
            "GET",
            f"{self.base_url}/payment/{lookup_id}",
            log_context,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "X-Merchant-Key": config["ORANGE_MERCHANT_KEY"],
            },
        )
        if response.status_code == 401:
            self.invalidate_token()
            raise GatewayAuthError(
                "Orange Money rejected the access token",
                provider=self.provider,
                status_code=response.status_code,
            )
        if not response.ok:
            raise GatewayRequestError(
                "Orange Money status query failed",
                provider=self.provider,
                provider_code=error_code_from(response, "code"),
                status_code=response.status_code,
                raw_response=truncate_body(response.text),
            )

        body = self._json(response)
        provider_status = str(body.get("status") or "").lower()
        if provider_status in self.COMPLETED_STATUSES:
            status = AttemptStatus.COMPLETED
        elif provider_status in self.FAILED_STATUSES:
            status = AttemptStatus.FAILED
        else:
            status = AttemptStatus.PENDING

        amount = body.get("amount")
        return VerificationResult(
            provider=self.provider,
            reference=reference,
            status=status,
            amount=coerce_amount(amount),
            raw_response=body,
        )
