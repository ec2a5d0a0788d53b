"""
State enums for payment models.

These are Django TextChoices for database storage and admin integration.

State Machines Overview:

PaymentAttempt Status:
    pending → completed (confirmation credited, exactly once per reference)
    pending → failed (provider reported a definitive failure)

    Transitions are conditional UPDATEs on the status column, never a
    read-then-write in application code, because webhooks, verify calls and
    the reconciliation task may race on the same reference.

WebhookEvent Status:
    received → processed | skipped | failed
"""

from django.db import models


class ServiceType(models.TextChoices):
    """
    Token classes a user can buy.

    Each service has a fixed per-token FCFA price, see payments.pricing.
    """

    AUTO = "auto", "Auto"
    CATA_CATANIS = "cata_catanis", "Cata Catanis"
    SCHOOL_FEES = "school_fees", "School Fees"
    MOTORS = "motors", "Motors"
    TELEPHONE = "telephone", "Telephone"
    FIRST_AID = "first_aid", "First Aid"


class PaymentMethod(models.TextChoices):
    """
    Payment providers.

    Values double as the <provider> segment of the initiate and webhook URLs.
    """

    ORANGE_MONEY = "orange_money", "Orange Money"
    SAMA_MONEY = "sama_money", "SAMA Money"
    CINETPAY = "cinetpay", "CinetPay"


class AttemptStatus(models.TextChoices):
    """
    Status of a PaymentAttempt.

    Terminal states: COMPLETED, FAILED
    """

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class TransactionType(models.TextChoices):
    """
    Kind of token movement.

    PURCHASE rows carry a positive token_amount, RESCUE_CLAIM rows a negative
    one, so a subscription's balance is the plain sum of its log.
    """

    PURCHASE = "purchase", "Purchase"
    RESCUE_CLAIM = "rescue_claim", "Rescue Claim"


class TransactionStatus(models.TextChoices):
    """Status of a TokenTransaction."""

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for inbound provider webhooks.

    Status Flow:
        RECEIVED → PROCESSED (tokens credited or attempt marked failed)
        RECEIVED → SKIPPED (not a success notice, duplicate, unresolved user)
        RECEIVED → FAILED (payload could not be parsed or handler raised)

    The provider is acknowledged with 200 in every case.
    """

    RECEIVED = "received", "Received"
    PROCESSED = "processed", "Processed"
    SKIPPED = "skipped", "Skipped"
    FAILED = "failed", "Failed"
