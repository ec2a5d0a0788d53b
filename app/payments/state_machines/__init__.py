"""
State and choice enums for payment models.
"""

from payments.state_machines.states import (
    AttemptStatus,
    PaymentMethod,
    ServiceType,
    TransactionStatus,
    TransactionType,
    WebhookEventStatus,
)

__all__ = [
    "AttemptStatus",
    "PaymentMethod",
    "ServiceType",
    "TransactionStatus",
    "TransactionType",
    "WebhookEventStatus",
]
