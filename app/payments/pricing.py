"""
Token pricing and purchase limits.

Every service type has a fixed FCFA value per token. The credit engine turns
a confirmed amount into a token count with integer floor division, so a
payment that doesn't divide evenly is rounded down and the remainder is not
credited.

Usage:
    from payments.pricing import compute_tokens, token_value_for

    token_value_for("auto")              # 750
    compute_tokens(7500, "auto")          # 10
    compute_tokens(7500, "auto", 12)      # 12, supplied count wins
"""

from __future__ import annotations

import logging

from core.exceptions import ValidationError

from payments.state_machines import ServiceType

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# FCFA per token
TOKEN_VALUES: dict[str, int] = {
    ServiceType.AUTO: 750,
    ServiceType.CATA_CATANIS: 500,
    ServiceType.SCHOOL_FEES: 500,
    ServiceType.MOTORS: 250,
    ServiceType.TELEPHONE: 250,
    ServiceType.FIRST_AID: 500,
}

# Per purchase, per service
MIN_TOKENS_PER_PURCHASE = 10
MAX_TOKENS_PER_PURCHASE = 60

CURRENCY = "XOF"


# =============================================================================
# Functions
# =============================================================================


def token_value_for(service_type: str | None) -> int:
    """Return the FCFA value of one token, or 0 for an unknown service."""
    if not service_type:
        return 0
    return TOKEN_VALUES.get(service_type, 0)


def compute_tokens(
    amount: int | None,
    service_type: str | None,
    supplied_tokens: int | None = None,
) -> int:
    """
    Compute how many tokens a confirmed payment buys.

    A positive supplied count takes precedence over the amount. Otherwise the
    result is floor(amount / token_value). A zero token value (unknown
    service) or a non-positive amount yields 0; callers treat 0 as a data
    error and skip the credit.

    Args:
        amount: Confirmed amount in FCFA
        service_type: ServiceType value
        supplied_tokens: Token count carried by the attempt or event

    Returns:
        Non-negative number of tokens
    """
    if supplied_tokens and supplied_tokens > 0:
        return int(supplied_tokens)

    token_value = token_value_for(service_type)
    if token_value == 0:
        logger.warning(
            "No token value for service type",
            extra={"service_type": service_type, "amount": amount},
        )
        return 0

    if not amount or amount <= 0:
        return 0

    return int(amount) // token_value


def validate_token_quantity(tokens: int) -> None:
    """
    Enforce the per-purchase token limits.

    Raises:
        ValidationError: If tokens is outside MIN/MAX_TOKENS_PER_PURCHASE
    """
    if not MIN_TOKENS_PER_PURCHASE <= tokens <= MAX_TOKENS_PER_PURCHASE:
        raise ValidationError(
            f"Token quantity must be between {MIN_TOKENS_PER_PURCHASE} "
            f"and {MAX_TOKENS_PER_PURCHASE}",
            error_code="INVALID_TOKEN_QUANTITY",
            details={
                "tokens": tokens,
                "min": MIN_TOKENS_PER_PURCHASE,
                "max": MAX_TOKENS_PER_PURCHASE,
            },
        )


def price_for(service_type: str, tokens: int) -> int:
    """Return the FCFA price of `tokens` tokens of `service_type`."""
    return token_value_for(service_type) * tokens
