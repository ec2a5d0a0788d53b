"""
SAMA Money merchant API adapter.

Token-auth + pay flow, all form-encoded:
    1. POST /marchand/auth with the merchant command code and public key.
       The response's `status` must be 1; the session token is in
       resultat.token.
    2. POST /marchand/pay with the token as bearer. The payer confirms on
       their phone (USSD push); the provider calls our callback URL later.

Every request carries the merchant TRANSAC header. A non-1 `status` on the
pay call is an error code from a fixed table, translated to a French
message by map_sama_error().

Configuration (via settings):
    - SAMA_BASE_URL: API root (test environment by default)
    - SAMA_TRANSAC: TRANSAC header value
    - SAMA_CMD: Merchant command code
    - SAMA_CLE_PUBLIQUE: Merchant public key
    - SAMA_CALLBACK_URL: Payment notification URL
"""

from __future__ import annotations

import logging
import math
import re

from django.conf import settings

from core.helpers import mask_phone, mask_secret

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
from payments.exceptions import (
    GatewayAuthError,
    GatewayRequestError,
    PaymentValidationError,
)
from payments.state_machines import AttemptStatus, PaymentMethod

logger = logging.getLogger(__name__)


# =============================================================================
# Error Messages
# =============================================================================

SAMA_SUCCESS_STATUS = 1
SAMA_PENDING_STATUS = 0

SAMA_ERROR_MESSAGES: dict[int, str] = {
    1001: "Vous n'êtes pas autorisé à effectuer cette transaction",
    1002: "Code marchand incorrect",
    1003: "Codes fournis incorrects",
    1004: "Format du token incorrect",
    1005: "Format du montant incorrect",
    1006: "Numéro de téléphone incorrect ou inexistant sur SAMA Money",
    1007: "Description incorrecte",
    1008: "URL de callback incorrecte",
    1009: "Token expiré, veuillez réessayer",
    1010: "Ce numéro n'est pas un client SAMA Money",
    1011: "Ce numéro de commande existe déjà",
    1012: "Utilisateur pas dans le bon groupe",
    1013: "Solde insuffisant sur votre compte SAMA Money",
    1014: "Problème de lancement USSD",
    1015: "Demande non envoyée, merci de recommencer",
}

GENERIC_ERROR_MESSAGE = "Échec du paiement SAMA Money"
INSUFFICIENT_BALANCE_MESSAGE = (
    "Solde insuffisant sur votre compte SAMA Money. "
    "Veuillez recharger votre compte et réessayer."
)
UNKNOWN_NUMBER_MESSAGE = "Ce numéro de téléphone n'est pas enregistré sur SAMA Money."
SESSION_EXPIRED_MESSAGE = "Session expirée, veuillez réessayer."

# Checked in order against the provider text plus the table message
MESSAGE_OVERRIDES: tuple[tuple[str, str], ...] = (
    ("Solde insuffisant", INSUFFICIENT_BALANCE_MESSAGE),
    ("n'existe pas", UNKNOWN_NUMBER_MESSAGE),
    ("Token", SESSION_EXPIRED_MESSAGE),
)

# Mali (+223, 8 digits starting 7 or 6) or Senegal (+221, 10 digits)
PHONE_PATTERN = re.compile(
    r"^(?:(?:\+223|00223|223)?[76]\d{7}|(?:\+221|00221|221)?[0-9]{10})$"
)

DEFAULT_DESCRIPTION = "Ô Secours token purchase"


def map_sama_error(code, provider_message: str | None = None) -> str:
    """
    Translate a SAMA Money status code into a user-facing French message.

    The code is looked up in SAMA_ERROR_MESSAGES (unknown or malformed codes
    fall back to GENERIC_ERROR_MESSAGE). The provider's own text and the
    table message are then checked for known substrings that deserve a more
    actionable message. Never raises.

    Args:
        code: Status code as returned by the provider (int or str)
        provider_message: The `msg` field of the provider response

    Returns:
        Non-empty localized message

    Example:
        map_sama_error(1013)
        # "Solde insuffisant sur votre compte SAMA Money. Veuillez recharger ..."
    """
    try:
        table_message = SAMA_ERROR_MESSAGES.get(int(code), GENERIC_ERROR_MESSAGE)
    except (TypeError, ValueError):
        table_message = GENERIC_ERROR_MESSAGE

    text = f"{provider_message or ''} {table_message}"
    for needle, message in MESSAGE_OVERRIDES:
        if needle in text:
            return message
    return table_message


def is_valid_sama_phone(phone: str | None) -> bool:
    if not phone:
        return False
    return bool(PHONE_PATTERN.match(re.sub(r"[\s-]", "", phone)))


def _status_of(body: dict) -> int | None:
    try:
        return int(body.get("status"))
    except (TypeError, ValueError):
        return None


# =============================================================================
# Adapter
# =============================================================================


class SamaMoneyAdapter(GatewayAdapter):
    """Adapter for the SAMA Money merchant API."""

    provider = PaymentMethod.SAMA_MONEY
    supports_verification = True

    @property
    def base_url(self) -> str:
        return settings.SAMA_BASE_URL.rstrip("/")

    def authenticate(self) -> str:
        """
        Obtain a session token.

        Raises:
            ConfigurationError: Merchant credentials missing
            GatewayAuthError: Non-2xx answer or status other than 1
            NetworkError: Provider unreachable
        """
        config = require_settings(
            self.provider, "SAMA_TRANSAC", "SAMA_CMD", "SAMA_CLE_PUBLIQUE"
        )
        log_context = {"operation": "sama_money.authenticate", "provider": self.provider}

        response = self._send(
            "POST",
            f"{self.base_url}/marchand/auth",
            log_context,
            headers={
                "TRANSAC": config["SAMA_TRANSAC"],
                "Accept": "application/json",
            },
            data={
                "cmd": config["SAMA_CMD"],
                "cle_publique": config["SAMA_CLE_PUBLIQUE"],
            },
        )
        if not response.ok:
            raise GatewayAuthError(
                "SAMA Money authentication failed",
                provider=self.provider,
                status_code=response.status_code,
                raw_response=truncate_body(response.text),
            )

        body = self._json(response, GatewayAuthError)
        token = (body.get("resultat") or {}).get("token")
        if _status_of(body) != SAMA_SUCCESS_STATUS or not token:
            logger.error(
                "SAMA Money auth refused",
                extra={**log_context, "provider_status": body.get("status")},
            )
            raise GatewayAuthError(
                "SAMA Money authentication refused",
                provider=self.provider,
                status_code=response.status_code,
                raw_response=body,
            )

        logger.info(
            "SAMA Money session opened",
            extra={**log_context, "token": mask_secret(token)},
        )
        return token

    def initiate(self, request: InitiatePaymentRequest) -> InitiationResult:
        """
        Push a payment request to the payer's phone.

        Returns:
            InitiationResult; on refusal, message is the localized error

        Raises:
            PaymentValidationError: Phone number missing or malformed
            ConfigurationError: Merchant credentials missing
            GatewayAuthError: Session token could not be obtained
            GatewayRequestError: Pay endpoint answered non-2xx or garbage
            NetworkError: Provider unreachable
        """
        if not is_valid_sama_phone(request.phone):
            raise PaymentValidationError(
                "Numéro de téléphone invalide pour SAMA Money",
                error_code="INVALID_PHONE",
                details={"phone": mask_phone(request.phone)},
            )

        config = require_settings(self.provider, "SAMA_TRANSAC", "SAMA_CMD")
        token = self.authenticate()

        log_context = {
            "operation": "sama_money.initiate",
            "provider": self.provider,
            "reference": request.reference,
            "amount": request.amount,
            "phone": mask_phone(request.phone),
            "token": mask_secret(token),
        }
        response = self._send(
            "POST",
            f"{self.base_url}/marchand/pay",
            log_context,
            headers={
                "Authorization": f"Bearer {token}",
                "TRANSAC": config["SAMA_TRANSAC"],
                "Accept": "application/json",
            },
            data={
                "cmd": config["SAMA_CMD"],
                "idCommande": request.reference,
                "phoneClient": request.phone,
                "montant": str(math.trunc(request.amount)),
                "description": request.description or DEFAULT_DESCRIPTION,
                "url": settings.SAMA_CALLBACK_URL,
            },
        )
        if not response.ok:
            raise GatewayRequestError(
                "SAMA Money payment request failed",
                provider=self.provider,
                provider_code=error_code_from(response, "status", "code"),
                status_code=response.status_code,
                raw_response=truncate_body(response.text),
            )

        body = self._json(response)
        status = _status_of(body)
        if status != SAMA_SUCCESS_STATUS:
            message = map_sama_error(body.get("status"), body.get("msg"))
            logger.warning(
                "SAMA Money refused payment",
                extra={
                    **log_context,
                    "provider_status": body.get("status"),
                    "provider_message": body.get("msg"),
                },
            )
            return InitiationResult(
                success=False,
                provider=self.provider,
                reference=request.reference,
                message=message,
                error_code=str(body.get("status")),
                raw_response=body,
            )

        return InitiationResult(
            success=True,
            provider=self.provider,
            reference=request.reference,
            pay_token=body.get("transNumber"),
            message=body.get("msg") or "Paiement initié, confirmez sur votre téléphone",
            raw_response=body,
        )

    def verify(self, reference: str, payment_id: str | None = None) -> VerificationResult:
        """
        Query /marchand/transaction/infos.

        Status 1 maps to completed, 0 to pending, anything else to failed.
        """
        config = require_settings(self.provider, "SAMA_TRANSAC", "SAMA_CMD")
        log_context = {
            "operation": "sama_money.verify",
            "provider": self.provider,
            "reference": reference,
        }
        response = self._send(
            "POST",
            f"{self.base_url}/marchand/transaction/infos",
            log_context,
            headers={
                "TRANSAC": config["SAMA_TRANSAC"],
                "Accept": "application/json",
            },
            data={"cmd": config["SAMA_CMD"], "idCommande": reference},
        )
        if not response.ok:
            raise GatewayRequestError(
                "SAMA Money status query failed",
                provider=self.provider,
                provider_code=error_code_from(response, "status", "code"),
                status_code=response.status_code,
                raw_response=truncate_body(response.text),
            )

        body = self._json(response)
        provider_status = _status_of(body)
        if provider_status == SAMA_SUCCESS_STATUS:
            status = AttemptStatus.COMPLETED
        elif provider_status == SAMA_PENDING_STATUS:
            status = AttemptStatus.PENDING
        else:
            status = AttemptStatus.FAILED

        return VerificationResult(
            provider=self.provider,
            reference=reference,
            status=status,
            amount=coerce_amount(body.get("montant")),
            raw_response=body,
        )
