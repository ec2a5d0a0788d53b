"""
Payment gateway adapters.

All provider API calls go through these adapters so that timeouts, error
classification and log masking are handled the same way for every gateway.

Usage:
    from payments.adapters import InitiatePaymentRequest, get_adapter

    adapter = get_adapter("orange")      # alias of "orange_money"
    result = adapter.initiate(
        InitiatePaymentRequest(reference="TOKENS_auto_U1_1700000000", amount=7500)
    )
    if result.success:
        redirect_to(result.payment_url)
"""

from __future__ import annotations

from payments.adapters.base import (
    CustomerProfile,
    GatewayAdapter,
    InitiatePaymentRequest,
    InitiationResult,
    VerificationResult,
    backoff_delay,
    coerce_amount,
    is_retryable_gateway_error,
)
from payments.adapters.cinetpay import CinetPayAdapter
from payments.adapters.orange_money import OrangeMoneyAdapter
from payments.adapters.sama_money import SamaMoneyAdapter, map_sama_error
from payments.state_machines import PaymentMethod

ADAPTERS: dict[str, type[GatewayAdapter]] = {
    PaymentMethod.ORANGE_MONEY: OrangeMoneyAdapter,
    PaymentMethod.SAMA_MONEY: SamaMoneyAdapter,
    PaymentMethod.CINETPAY: CinetPayAdapter,
}

# Short names used in callback URLs and by older clients
PROVIDER_ALIASES: dict[str, str] = {
    "orange": PaymentMethod.ORANGE_MONEY,
    "sama": PaymentMethod.SAMA_MONEY,
}


def normalize_provider(provider: str | None) -> str | None:
    """Return the PaymentMethod value for a provider name or alias, else None."""
    if not provider:
        return None
    name = provider.strip().lower().replace("-", "_")
    name = PROVIDER_ALIASES.get(name, name)
    return name if name in ADAPTERS else None


def get_adapter(provider: str) -> GatewayAdapter:
    """
    Instantiate the adapter for a provider.

    Raises:
        KeyError: Unknown provider
    """
    name = normalize_provider(provider)
    if name is None:
        raise KeyError(provider)
    return ADAPTERS[name]()


__all__ = [
    "ADAPTERS",
    "CinetPayAdapter",
    "CustomerProfile",
    "GatewayAdapter",
    "InitiatePaymentRequest",
    "InitiationResult",
    "OrangeMoneyAdapter",
    "SamaMoneyAdapter",
    "VerificationResult",
    "backoff_delay",
    "coerce_amount",
    "get_adapter",
    "is_retryable_gateway_error",
    "map_sama_error",
    "normalize_provider",
]
