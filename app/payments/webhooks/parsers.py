"""
Provider webhook payload parsers.

Each provider posts its own payload shape. A parser turns it into a
ConfirmationEvent right away, so nothing past this module reads provider
field names.

Field names per provider (first present wins):
    orange_money: reference  order_id | reference | ref | orderId
                  status     status | status_code   success | completed | ok
                  amount     amount
    cinetpay:     reference  transaction_id | cpm_trans_id | cpm_trans_id_form
                  status     status | cpm_result    ACCEPTED
                  amount     amount | cpm_amount
                  identity   parsed from the transaction id
    sama_money:   reference  idCommande | reference | orderId
                  status     status | etat          success | completed | 1
                                                   failed | cancelled | error | 0
                  amount     montant | amount

Usage:
    from payments.webhooks.parsers import parse_payload

    event = parse_payload("orange_money", {"order_id": "R1", "status": "SUCCESS"})
    event.is_success  # True
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from payments.adapters import coerce_amount
from payments.references import parse_reference
from payments.state_machines import PaymentMethod


class ConfirmationOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    OTHER = "other"


@dataclass(frozen=True)
class ConfirmationEvent:
    """
    A provider notification, normalized.

    Attributes:
        provider: PaymentMethod value
        outcome: What the provider says happened
        reference: Payment reference, if the payload carried one
        amount: Confirmed amount in FCFA
        user_id / service_type: Buyer identity, when the payload encodes it
        raw_status: Provider status as received, for logs
    """

    provider: str
    outcome: ConfirmationOutcome
    reference: str | None = None
    amount: int | None = None
    user_id: str | None = None
    service_type: str | None = None
    raw_status: str = ""

    @property
    def is_success(self) -> bool:
        return self.outcome == ConfirmationOutcome.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.outcome == ConfirmationOutcome.FAILURE


class PayloadError(ValueError):
    """The payload is not something a provider would send."""


PARSERS: dict[str, Callable[[dict[str, Any]], ConfirmationEvent]] = {}


def register_parser(provider: str) -> Callable:
    def decorator(func):
        PARSERS[provider] = func
        return func

    return decorator


def parse_payload(provider: str, payload: Any) -> ConfirmationEvent:
    """
    Parse a webhook payload for a provider.

    Raises:
        PayloadError: Payload is not an object, or no parser for provider
    """
    if not isinstance(payload, dict):
        raise PayloadError("Webhook payload must be an object")
    parser = PARSERS.get(provider)
    if parser is None:
        raise PayloadError(f"No webhook parser for {provider}")
    return parser(payload)


def _first(payload: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


# =============================================================================
# Parsers
# =============================================================================


ORANGE_SUCCESS = frozenset({"success", "completed", "ok"})


@register_parser(PaymentMethod.ORANGE_MONEY)
def parse_orange_money(payload: dict[str, Any]) -> ConfirmationEvent:
    status = _text(_first(payload, "status", "status_code")).lower()
    return ConfirmationEvent(
        provider=PaymentMethod.ORANGE_MONEY,
        outcome=ConfirmationOutcome.SUCCESS if status in ORANGE_SUCCESS else ConfirmationOutcome.OTHER,
        reference=_text(_first(payload, "order_id", "reference", "ref", "orderId")) or None,
        amount=coerce_amount(payload.get("amount")),
        raw_status=status,
    )


CINETPAY_ACCEPTED = "ACCEPTED"


@register_parser(PaymentMethod.CINETPAY)
def parse_cinetpay(payload: dict[str, Any]) -> ConfirmationEvent:
    transaction_id = _text(
        _first(payload, "transaction_id", "cpm_trans_id", "cpm_trans_id_form")
    )
    status = _text(_first(payload, "status", "cpm_result")).upper()
    parsed = parse_reference(transaction_id)
    return ConfirmationEvent(
        provider=PaymentMethod.CINETPAY,
        outcome=(
            ConfirmationOutcome.SUCCESS if status == CINETPAY_ACCEPTED else ConfirmationOutcome.OTHER
        ),
        reference=transaction_id or None,
        amount=coerce_amount(_first(payload, "amount", "cpm_amount")),
        user_id=parsed.user_id if parsed else None,
        service_type=parsed.service_type if parsed else None,
        raw_status=status,
    )


SAMA_SUCCESS = frozenset({"success", "completed", "1"})
SAMA_FAILURE = frozenset({"failed", "cancelled", "error", "0"})


@register_parser(PaymentMethod.SAMA_MONEY)
def parse_sama_money(payload: dict[str, Any]) -> ConfirmationEvent:
    status = _text(_first(payload, "status", "etat")).lower()
    if status in SAMA_SUCCESS:
        outcome = ConfirmationOutcome.SUCCESS
    elif status in SAMA_FAILURE:
        outcome = ConfirmationOutcome.FAILURE
    else:
        outcome = ConfirmationOutcome.OTHER
    return ConfirmationEvent(
        provider=PaymentMethod.SAMA_MONEY,
        outcome=outcome,
        reference=_text(_first(payload, "idCommande", "reference", "orderId")) or None,
        amount=coerce_amount(_first(payload, "montant", "amount")),
        raw_status=status,
    )
