"""
Create the referral tables.

Models:
    - Member: referral profile and referrer balances
    - Referral: referrer to referred-user link
    - Commission: per-payment commission (FSM status)
    - AffiliateReward: one-time registration reward per referral
"""

import uuid
from decimal import Decimal

from django.db import migrations, models
import django.db.models.deletion
import django_fsm


def timestamp_fields():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
    ]


def uuid_pk():
    return (
        "id",
        models.UUIDField(
            default=uuid.uuid4,
            editable=False,
            help_text="Unique identifier for this record",
            primary_key=True,
            serialize=False,
        ),
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Member",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                *timestamp_fields(),
                (
                    "user_id",
                    models.CharField(help_text="User id", max_length=64, unique=True),
                ),
                (
                    "referred_by",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="user_id of the member who referred this one",
                        max_length=64,
                        null=True,
                    ),
                ),
                (
                    "available_commissions",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Commission earned and not yet paid out (FCFA)",
                        max_digits=14,
                    ),
                ),
                (
                    "total_commissions_earned",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Lifetime commission earned (FCFA)",
                        max_digits=14,
                    ),
                ),
                (
                    "current_credits",
                    models.PositiveIntegerField(default=0, help_text="Unspent credit points"),
                ),
                (
                    "total_credits_earned",
                    models.PositiveIntegerField(
                        default=0, help_text="Lifetime credit points earned"
                    ),
                ),
            ],
            options={
                "verbose_name": "Member",
                "verbose_name_plural": "Members",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Referral",
            fields=[
                *timestamp_fields(),
                uuid_pk(),
                (
                    "referrer_id",
                    models.CharField(
                        db_index=True, help_text="user_id of the referrer", max_length=64
                    ),
                ),
                (
                    "referred_user_id",
                    models.CharField(
                        db_index=True,
                        help_text="user_id of the referred member",
                        max_length=64,
                    ),
                ),
                (
                    "referral_code",
                    models.CharField(
                        help_text="Referral code used at registration", max_length=32
                    ),
                ),
                (
                    "referral_type",
                    models.CharField(
                        choices=[("member", "Member"), ("merchant", "Merchant")],
                        default="member",
                        help_text="Kind of referral",
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("inactive", "Inactive"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="active",
                        help_text="Referral status",
                        max_length=20,
                    ),
                ),
                (
                    "first_payment_date",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the referred member first paid",
                        null=True,
                    ),
                ),
                (
                    "last_renewal_date",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the referred member last paid after the first time",
                        null=True,
                    ),
                ),
                (
                    "total_commissions_generated",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Sum of commissions posted for this referral (FCFA)",
                        max_digits=14,
                    ),
                ),
            ],
            options={
                "verbose_name": "Referral",
                "verbose_name_plural": "Referrals",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("referrer_id", "referred_user_id"),
                        name="referral_unique_pair",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Commission",
            fields=[
                *timestamp_fields(),
                uuid_pk(),
                (
                    "referrer_id",
                    models.CharField(
                        db_index=True, help_text="user_id of the referrer", max_length=64
                    ),
                ),
                (
                    "referred_user_id",
                    models.CharField(
                        help_text="user_id of the paying member", max_length=64
                    ),
                ),
                (
                    "commission_type",
                    models.CharField(
                        choices=[("initial", "Initial"), ("renewal", "Renewal")],
                        help_text="Initial or renewal payment",
                        max_length=20,
                    ),
                ),
                (
                    "payment_amount",
                    models.DecimalField(
                        decimal_places=2, help_text="Payment amount (FCFA)", max_digits=14
                    ),
                ),
                (
                    "commission_rate",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0.10"),
                        help_text="Commission rate applied",
                        max_digits=5,
                    ),
                ),
                (
                    "commission_amount",
                    models.DecimalField(
                        decimal_places=2, help_text="Commission owed (FCFA)", max_digits=14
                    ),
                ),
                (
                    "payment_reference",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Reference of the payment the commission is for",
                        max_length=128,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current commission status (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "paid_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the commission was paid out",
                        null=True,
                    ),
                ),
                (
                    "referral",
                    models.ForeignKey(
                        help_text="Referral the payment came through",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="commissions",
                        to="referrals.referral",
                    ),
                ),
            ],
            options={
                "verbose_name": "Commission",
                "verbose_name_plural": "Commissions",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("payment_reference", ""), _negated=True),
                        fields=("referral", "payment_reference"),
                        name="commission_unique_referral_payment",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AffiliateReward",
            fields=[
                *timestamp_fields(),
                uuid_pk(),
                (
                    "referrer_id",
                    models.CharField(
                        db_index=True, help_text="user_id of the referrer", max_length=64
                    ),
                ),
                (
                    "referred_user_id",
                    models.CharField(
                        help_text="user_id of the registering member", max_length=64
                    ),
                ),
                (
                    "reward_type",
                    models.CharField(
                        choices=[
                            ("credit_points", "Credit Points"),
                            ("commission", "Commission"),
                        ],
                        help_text="Credit points or commission",
                        max_length=20,
                    ),
                ),
                (
                    "credit_points_awarded",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Credit points awarded (credit_points rewards)",
                    ),
                ),
                (
                    "commission_percentage",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Commission percentage applied (commission rewards)",
                        max_digits=5,
                    ),
                ),
                (
                    "commission_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Commission awarded (FCFA)",
                        max_digits=14,
                    ),
                ),
                (
                    "registration_fee",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Registration fee the reward was decided on (FCFA)",
                        max_digits=14,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("awarded", "Awarded")],
                        default="pending",
                        help_text="Reward status",
                        max_length=20,
                    ),
                ),
                (
                    "awarded_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the reward was credited to the referrer",
                        null=True,
                    ),
                ),
                (
                    "referral",
                    models.OneToOneField(
                        help_text="Referral rewarded (at most one reward each)",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reward",
                        to="referrals.referral",
                    ),
                ),
            ],
            options={
                "verbose_name": "Affiliate Reward",
                "verbose_name_plural": "Affiliate Rewards",
                "ordering": ["-created_at"],
            },
        ),
    ]
