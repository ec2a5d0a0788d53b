"""
Base exception classes for application-wide error handling.

Every domain error raised by the service layer derives from
BaseApplicationError so that views can turn it into a uniform JSON body
without knowing which app raised it.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input validation failures
    └── NotFoundError - Resource not found

Usage:
    from core.exceptions import ValidationError

    raise ValidationError(
        "Token quantity out of range",
        error_code="INVALID_TOKEN_QUANTITY",
        details={"tokens": 5, "min": 10, "max": 60},
    )

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=400)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, provider payloads, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Orange Money authentication failed",
                "error_code": "GATEWAY_AUTH_ERROR",
                "details": {"provider": "orange_money", "status_code": 401}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails in the service layer.

    For request-body validation use DRF serializers; this is for rules the
    service enforces itself (phone formats, purchase limits).
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """Raised when a single resource expected to exist is missing."""

    default_error_code: str = "NOT_FOUND"

