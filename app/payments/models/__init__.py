"""
Payment domain models.

- PaymentAttempt: One row per token purchase sent to a provider
- Subscription: Per-user, per-service token balance
- TokenTransaction: Append-only log of token movements
- WebhookEvent: Audit trail of provider callbacks
"""

from payments.models.payment_attempt import PaymentAttempt
from payments.models.subscription import Subscription
from payments.models.token_transaction import TokenTransaction
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "PaymentAttempt",
    "Subscription",
    "TokenTransaction",
    "WebhookEvent",
]
