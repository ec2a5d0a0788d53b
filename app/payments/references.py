"""
Payment reference format.

References built by the orchestrator embed the buyer identity:

    TOKENS_<service type>_<user id>_<epoch milliseconds>

CinetPay notifications carry nothing but this transaction id, so it must be
parseable without a database lookup. Service types may contain underscores,
user ids may not.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass

from payments.state_machines import ServiceType

REFERENCE_PREFIX = "TOKENS"

REFERENCE_PATTERN = re.compile(r"^TOKENS_([a-z_]+)_([^_]+)_\d+$", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedReference:
    service_type: str
    user_id: str


def can_embed_user_id(user_id: str | None) -> bool:
    """Whether a user id survives a build_reference / parse_reference round trip."""
    return bool(user_id) and "_" not in user_id


def build_reference(service_type: str, user_id: str, now_ms: int | None = None) -> str:
    """
    Build a reference that parse_reference() maps back to its buyer.

    Raises:
        ValueError: If the user id contains an underscore
    """
    if not can_embed_user_id(user_id):
        raise ValueError(f"User id cannot be embedded in a reference: {user_id!r}")
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{REFERENCE_PREFIX}_{service_type}_{user_id}_{now_ms}"


def parse_reference(reference: str | None) -> ParsedReference | None:
    """
    Extract service type and user id from a reference.

    Returns None unless the whole string matches and the service type is a
    known one.

    Example:
        parse_reference("TOKENS_auto_USER123_1700000000")
        # ParsedReference(service_type="auto", user_id="USER123")
    """
    if not reference:
        return None
    match = REFERENCE_PATTERN.match(reference.strip())
    if not match:
        return None
    service_type = match.group(1).lower()
    if service_type not in ServiceType.values:
        return None
    return ParsedReference(service_type=service_type, user_id=match.group(2))
