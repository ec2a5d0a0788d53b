"""
Create the token purchase tables.

Models:
    - PaymentAttempt: initiated purchases, unique per reference
    - Subscription: per-user, per-service token balance
    - TokenTransaction: append-only token movements
    - WebhookEvent: provider callback audit trail
"""

import uuid

from django.db import migrations, models
import django.db.models.deletion


SERVICE_TYPE_CHOICES = [
    ("auto", "Auto"),
    ("cata_catanis", "Cata Catanis"),
    ("school_fees", "School Fees"),
    ("motors", "Motors"),
    ("telephone", "Telephone"),
    ("first_aid", "First Aid"),
]

PAYMENT_METHOD_CHOICES = [
    ("orange_money", "Orange Money"),
    ("sama_money", "SAMA Money"),
    ("cinetpay", "CinetPay"),
]

STATUS_CHOICES = [
    ("pending", "Pending"),
    ("completed", "Completed"),
    ("failed", "Failed"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PaymentAttempt",
            fields=[
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
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "reference",
                    models.CharField(
                        help_text="Caller-supplied idempotency key (provider order id)",
                        max_length=128,
                        unique=True,
                    ),
                ),
                (
                    "user_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Buyer user id, resolved later if unknown at creation",
                        max_length=64,
                        null=True,
                    ),
                ),
                (
                    "service_type",
                    models.CharField(
                        blank=True,
                        choices=SERVICE_TYPE_CHOICES,
                        help_text="Token class being purchased",
                        max_length=32,
                        null=True,
                    ),
                ),
                (
                    "tokens_requested",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Number of tokens chosen at checkout",
                        null=True,
                    ),
                ),
                ("amount", models.BigIntegerField(help_text="Amount in FCFA")),
                (
                    "method",
                    models.CharField(
                        choices=PAYMENT_METHOD_CHOICES,
                        help_text="Payment provider",
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=STATUS_CHOICES,
                        db_index=True,
                        default="pending",
                        help_text="Current attempt status",
                        max_length=20,
                    ),
                ),
                (
                    "gateway_payload",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Provider initiation response (secrets stripped)",
                    ),
                ),
                (
                    "completed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the attempt was confirmed and credited",
                        null=True,
                    ),
                ),
                (
                    "failed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the provider reported a failure",
                        null=True,
                    ),
                ),
                (
                    "failure_reason",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Provider failure message, if any",
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment Attempt",
                "verbose_name_plural": "Payment Attempts",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "created_at"],
                        name="payments_pa_status_6f1d2c_idx",
                    ),
                    models.Index(
                        fields=["method", "status"],
                        name="payments_pa_method_3a9e41_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gte", 0)),
                        name="payment_attempt_amount_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Subscription",
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
                (
                    "user_id",
                    models.CharField(
                        db_index=True,
                        help_text="Owner user id",
                        max_length=64,
                    ),
                ),
                (
                    "service_type",
                    models.CharField(
                        choices=SERVICE_TYPE_CHOICES,
                        help_text="Token class held by this subscription",
                        max_length=32,
                    ),
                ),
                (
                    "token_balance",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Current token balance (mutated only via F() expressions)",
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Inactive subscriptions are kept for history, never deleted",
                    ),
                ),
                (
                    "subscription_date",
                    models.DateTimeField(
                        auto_now_add=True,
                        help_text="When the user subscribed to this service",
                    ),
                ),
                (
                    "last_rescue_claim_date",
                    models.DateTimeField(
                        blank=True,
                        help_text="When tokens were last spent on a rescue claim",
                        null=True,
                    ),
                ),
            ],
            options={
                "verbose_name": "Subscription",
                "verbose_name_plural": "Subscriptions",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user_id", "service_type"),
                        name="subscription_unique_user_service",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("token_balance__gte", 0)),
                        name="subscription_token_balance_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="TokenTransaction",
            fields=[
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
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("purchase", "Purchase"),
                            ("rescue_claim", "Rescue Claim"),
                        ],
                        help_text="Kind of token movement",
                        max_length=20,
                    ),
                ),
                (
                    "token_amount",
                    models.IntegerField(
                        help_text="Signed token delta (purchases positive, claims negative)",
                    ),
                ),
                (
                    "token_value",
                    models.PositiveIntegerField(help_text="FCFA value of one token"),
                ),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=PAYMENT_METHOD_CHOICES,
                        default="",
                        help_text="Provider that paid for a purchase",
                        max_length=32,
                    ),
                ),
                (
                    "transaction_reference",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        default="",
                        help_text="Payment reference this movement originates from",
                        max_length=128,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=STATUS_CHOICES,
                        default="completed",
                        help_text="Transaction status",
                        max_length=20,
                    ),
                ),
                (
                    "subscription",
                    models.ForeignKey(
                        help_text="Subscription whose balance this movement changes",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="payments.subscription",
                    ),
                ),
            ],
            options={
                "verbose_name": "Token Transaction",
                "verbose_name_plural": "Token Transactions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["subscription", "created_at"],
                        name="payments_to_subscri_8c2b7e_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("token_amount__gt", 0),
                                ("transaction_type", "purchase"),
                            ),
                            models.Q(
                                ("token_amount__lt", 0),
                                ("transaction_type", "rescue_claim"),
                            ),
                            _connector="OR",
                        ),
                        name="token_transaction_sign_matches_type",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
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
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "provider",
                    models.CharField(
                        db_index=True,
                        help_text="Provider the callback was addressed to",
                        max_length=32,
                    ),
                ),
                (
                    "reference",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        default="",
                        help_text="Payment reference extracted from the payload",
                        max_length=128,
                    ),
                ),
                (
                    "payload",
                    models.JSONField(default=dict, help_text="Raw webhook payload"),
                ),
                (
                    "source_ip",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Address the callback came from",
                        max_length=64,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("received", "Received"),
                            ("processed", "Processed"),
                            ("skipped", "Skipped"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="received",
                        help_text="Processing outcome",
                        max_length=20,
                    ),
                ),
                (
                    "outcome",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Skip reason or error message",
                    ),
                ),
                (
                    "processed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When processing finished",
                        null=True,
                    ),
                ),
            ],
            options={
                "verbose_name": "Webhook Event",
                "verbose_name_plural": "Webhook Events",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["provider", "created_at"],
                        name="payments_we_provide_4d7a90_idx",
                    ),
                    models.Index(
                        fields=["status", "created_at"],
                        name="payments_we_status_b25e13_idx",
                    ),
                ],
            },
        ),
    ]
