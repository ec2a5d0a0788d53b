"""
State and choice enums for referral models.

Commission Status:
    pending → paid (payout to the referrer recorded)
    pending → cancelled

    Managed by django-fsm on Commission.status.
"""

from django.db import models


class ReferralType(models.TextChoices):
    MEMBER = "member", "Member"
    MERCHANT = "merchant", "Merchant"


class ReferralStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"
    CANCELLED = "cancelled", "Cancelled"


class CommissionType(models.TextChoices):
    """First qualifying payment of a referred user, or any later one."""

    INITIAL = "initial", "Initial"
    RENEWAL = "renewal", "Renewal"


class CommissionStatus(models.TextChoices):
    """
    Status of a Commission.

    Terminal states: PAID, CANCELLED
    """

    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    CANCELLED = "cancelled", "Cancelled"


class RewardType(models.TextChoices):
    """
    One-time registration reward, decided once per referral.

    COMMISSION when the registration carried a fee, CREDIT_POINTS otherwise.
    """

    CREDIT_POINTS = "credit_points", "Credit Points"
    COMMISSION = "commission", "Commission"


class RewardStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    AWARDED = "awarded", "Awarded"
