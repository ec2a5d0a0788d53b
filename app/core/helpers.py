"""
Helper functions for common infrastructure operations.

This module provides domain-agnostic utility functions for:
- HTTP request helpers (client IP extraction)
- Redaction of secrets and phone numbers before they reach log output
- Redaction of credential fields in stored provider payloads

Usage:
    from core.helpers import get_client_ip, mask_secret

    ip = get_client_ip(request)
    logger.info("Token acquired", extra={"token": mask_secret(token)})
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from django.http import HttpRequest

# Payload keys holding credentials, matched as lowercase substrings
SECRET_FIELD_MARKERS = (
    "token",
    "secret",
    "password",
    "api_key",
    "apikey",
    "merchant_key",
    "authorization",
)


def get_client_ip(request: HttpRequest) -> str:
    """
    Extract client IP from request, handling proxies.

    Checks X-Forwarded-For header for proxy chains.
    """
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        # First IP in the chain is the original client
        ip = x_forwarded_for.split(",")[0].strip()
    else:
        ip = request.META.get("REMOTE_ADDR", "")
    return ip


def mask_secret(value: str | None, visible: int = 4) -> str:
    """
    Mask a token, API key or credential for logging.

    Only the last `visible` characters are kept, and only when the value is
    long enough that doing so doesn't reveal most of it.

    Args:
        value: Secret to mask
        visible: Number of trailing characters left readable

    Returns:
        Masked value (e.g., "***a1b2"), or "***" for short/empty input

    Example:
        mask_secret("eyJhbGciOiJIUzI1NiJ9.abcd")  # "***abcd"
    """
    if not value:
        return "***"
    value = str(value)
    if len(value) <= visible * 2:
        return "***"
    return f"***{value[-visible:]}"


def mask_phone(phone: str | None) -> str:
    """
    Mask phone number for display, keeping the last 4 digits.

    Example:
        mask_phone("+22376123456")  # "***3456"
    """
    digits_only = re.sub(r"[^\d]", "", phone or "")
    if len(digits_only) < 4:
        return "***"
    return f"***{digits_only[-4:]}"


def redact_secrets(data: Any) -> Any:
    """
    Copy a JSON-like payload with credential fields masked.

    Walks nested dicts and lists; any key containing one of
    SECRET_FIELD_MARKERS has its scalar value replaced by mask_secret().

    Example:
        redact_secrets({"pay_token": "abcdef123456", "status": "INITIATED"})
        # {"pay_token": "***3456", "status": "INITIATED"}
    """
    if isinstance(data, dict):
        redacted = {}
        for key, value in data.items():
            if isinstance(value, (dict, list)):
                redacted[key] = redact_secrets(value)
            elif any(marker in str(key).lower() for marker in SECRET_FIELD_MARKERS):
                redacted[key] = mask_secret(value)
            else:
                redacted[key] = value
        return redacted
    if isinstance(data, list):
        return [redact_secrets(item) for item in data]
    return data
