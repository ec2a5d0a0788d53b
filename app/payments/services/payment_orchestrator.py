"""
Payment orchestrator service for token purchases.

The orchestrator is the entry point for starting a purchase. It:
- Validates the purchase (service type, token limits, amount, phone)
- Builds the reference when the caller did not supply one
- Routes the request to the provider adapter
- Records the pending attempt once the provider accepted it

Initiation never credits tokens. A provider accepting the request only
means a checkout session exists; crediting happens on confirmation.

Usage:
    from payments.services import PaymentOrchestrator, InitiatePaymentParams

    result = PaymentOrchestrator.initiate(
        InitiatePaymentParams(
            provider="orange_money",
            user_id="U1",
            service_type="auto",
            tokens=10,
            amount=7500,
        )
    )

    if result.success:
        redirect_to(result.data.payment_url)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from core.exceptions import BaseApplicationError, ValidationError
from core.helpers import mask_phone, redact_secrets
from core.services import BaseService, ServiceResult

from payments.adapters import (
    CustomerProfile,
    InitiatePaymentRequest,
    InitiationResult,
    get_adapter,
    normalize_provider,
)
from payments.exceptions import gateway_log_context
from payments.pricing import price_for, token_value_for, validate_token_quantity
from payments.references import build_reference, can_embed_user_id
from payments.services.attempt_ledger import AttemptParams, record_attempt
from payments.state_machines import ServiceType

logger = logging.getLogger(__name__)


# =============================================================================
# Parameter Types
# =============================================================================


@dataclass
class InitiatePaymentParams:
    """
    Parameters for starting a token purchase.

    Attributes:
        provider: Provider name or alias ("orange_money", "sama", ...)
        user_id: Buyer
        service_type: Token class being bought
        amount: Amount in FCFA; must equal the price of `tokens`
        tokens: Token count; derived from amount when omitted
        reference: Idempotency key; generated when omitted
        phone: Payer number (SAMA Money)
        description: Text shown to the payer
        customer: Buyer profile (CinetPay)
        metadata: Extra data stored with the attempt
    """

    provider: str
    user_id: str
    service_type: str
    amount: int
    tokens: int | None = None
    reference: str | None = None
    phone: str | None = None
    description: str | None = None
    customer: CustomerProfile = field(default_factory=CustomerProfile)
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("user_id is required")
        if self.amount is None or self.amount <= 0:
            raise ValueError("amount must be positive")


# =============================================================================
# Payment Orchestrator
# =============================================================================


class PaymentOrchestrator(BaseService):
    """
    Coordinates purchase initiation across providers.

    All methods are class methods; no instance state is kept.
    """

    @classmethod
    def validate(cls, params: InitiatePaymentParams) -> int:
        """
        Check a purchase and return its token count.

        Raises:
            core.exceptions.ValidationError: Unknown service, user id that
                cannot be embedded in a reference, out-of-range token count,
                or amount not matching the token price
        """
        if params.service_type not in ServiceType.values:
            raise ValidationError(
                f"Unknown service type: {params.service_type}",
                error_code="INVALID_SERVICE_TYPE",
                details={"service_type": params.service_type},
            )

        if not params.reference and not can_embed_user_id(params.user_id):
            raise ValidationError(
                "User id may not contain underscores",
                error_code="INVALID_USER_ID",
                details={"user_id": params.user_id},
            )

        tokens = params.tokens
        if not tokens:
            tokens = params.amount // token_value_for(params.service_type)
        validate_token_quantity(tokens)

        expected = price_for(params.service_type, tokens)
        if params.amount != expected:
            raise ValidationError(
                f"Amount {params.amount} does not match the price of "
                f"{tokens} tokens ({expected})",
                error_code="AMOUNT_MISMATCH",
                details={"amount": params.amount, "expected": expected},
            )
        return tokens

    @classmethod
    def initiate(cls, params: InitiatePaymentParams) -> ServiceResult[InitiationResult]:
        """
        Start a token purchase with a provider.

        Returns:
            ServiceResult containing the InitiationResult on success. On
            failure error_code is one of:
                UNKNOWN_PROVIDER, INVALID_SERVICE_TYPE, INVALID_TOKEN_QUANTITY,
                AMOUNT_MISMATCH, INVALID_PHONE: request rejected locally
                PAYMENT_REJECTED: provider declined (data holds its result)
                CONFIGURATION_ERROR, GATEWAY_AUTH_ERROR,
                GATEWAY_REQUEST_ERROR, GATEWAY_NETWORK_ERROR: gateway failure
        """
        provider = normalize_provider(params.provider)
        log_context = {
            "provider": provider or params.provider,
            "user_id": params.user_id,
            "service_type": params.service_type,
            "amount": params.amount,
            "phone": mask_phone(params.phone),
        }
        if provider is None:
            cls.get_logger().warning("Unknown payment provider", extra=log_context)
            return ServiceResult.failure(
                f"Unsupported payment provider: {params.provider}",
                error_code="UNKNOWN_PROVIDER",
            )

        try:
            tokens = cls.validate(params)
        except BaseApplicationError as e:
            cls.get_logger().info(
                f"Purchase rejected: {e.message}",
                extra={**log_context, "error_code": e.error_code},
            )
            return ServiceResult.from_exception(e)

        reference = params.reference or build_reference(params.service_type, params.user_id)
        log_context["reference"] = reference
        cls.get_logger().info("Initiating payment", extra=log_context)

        try:
            request = InitiatePaymentRequest(
                reference=reference,
                amount=params.amount,
                service_type=params.service_type,
                user_id=params.user_id,
                tokens=tokens,
                phone=params.phone,
                description=params.description,
                customer=params.customer,
                metadata=params.metadata,
            )
            result = get_adapter(provider).initiate(request)
        except BaseApplicationError as e:
            cls.get_logger().error(
                f"Payment initiation failed: {e.message}",
                extra={
                    **log_context,
                    "error_code": e.error_code,
                    "details": e.details,
                    **gateway_log_context(e),
                },
            )
            return ServiceResult.from_exception(e)

        if not result.success:
            cls.get_logger().warning(
                "Provider declined payment",
                extra={**log_context, "error_code": result.error_code},
            )
            failure = ServiceResult.failure(
                result.message or "Paiement refusé",
                error_code="PAYMENT_REJECTED",
            )
            failure.data = result
            return failure

        record_attempt(
            AttemptParams(
                reference=reference,
                amount=params.amount,
                method=provider,
                user_id=params.user_id,
                service_type=params.service_type,
                tokens=tokens,
                gateway_payload={
                    **redact_secrets(result.raw_response or {}),
                    # Status lookups need the provider payment id in the clear
                    "pay_token": result.pay_token,
                    "payment_url": result.payment_url,
                    "metadata": params.metadata,
                },
            )
        )

        cls.get_logger().info(
            "Payment initiated",
            extra={**log_context, "tokens": tokens, "has_payment_url": bool(result.payment_url)},
        )
        return ServiceResult.success(result)
