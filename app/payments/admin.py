"""
Payment admin configuration.

Registers the token purchase models with the Django admin. Balances and
attempt statuses are changed through the service layer only, so every
monetary field is read-only here.
"""

from django.contrib import admin

from payments.models import PaymentAttempt, Subscription, TokenTransaction, WebhookEvent

__all__ = [
    "PaymentAttemptAdmin",
    "SubscriptionAdmin",
    "TokenTransactionAdmin",
    "WebhookEventAdmin",
]


# =============================================================================
# Payment Attempt Admin
# =============================================================================


@admin.register(PaymentAttempt)
class PaymentAttemptAdmin(admin.ModelAdmin):
    """
    Admin configuration for PaymentAttempt.

    Provides visibility into initiated purchases and their confirmation.
    Status changes go through the credit engine, not admin.
    """

    list_display = [
        "reference",
        "user_id",
        "service_type",
        "amount_display",
        "method",
        "status",
        "created_at",
    ]
    list_filter = ["status", "method", "service_type", "created_at"]
    search_fields = ["reference", "user_id"]
    readonly_fields = [
        "id",
        "reference",
        "user_id",
        "service_type",
        "tokens_requested",
        "amount",
        "method",
        "status",
        "gateway_payload",
        "completed_at",
        "failed_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "reference", "status"),
            },
        ),
        (
            "Purchase",
            {
                "fields": (
                    "user_id",
                    "service_type",
                    "tokens_requested",
                    "amount",
                    "method",
                ),
            },
        ),
        (
            "Provider",
            {
                "fields": ("gateway_payload", "failure_reason"),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("completed_at", "failed_at", "created_at", "updated_at"),
            },
        ),
    )

    def amount_display(self, obj: PaymentAttempt) -> str:
        """Display the amount in FCFA."""
        return f"{obj.amount:,} FCFA"

    amount_display.short_description = "Amount"

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for payment attempts (idempotency record)."""
        return False

    def has_add_permission(self, request) -> bool:
        return False


# =============================================================================
# Token Ledger Admin
# =============================================================================


class TokenTransactionInline(admin.TabularInline):
    """Inline display of token movements for a subscription."""

    model = TokenTransaction
    extra = 0
    readonly_fields = [
        "id",
        "transaction_type",
        "token_amount",
        "token_value",
        "payment_method",
        "transaction_reference",
        "status",
        "created_at",
    ]
    fields = readonly_fields
    can_delete = False
    ordering = ["-created_at"]

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    """
    Admin configuration for Subscription.

    Shows the stored balance next to the balance replayed from the
    transaction log so drift is visible at a glance.
    """

    list_display = [
        "id",
        "user_id",
        "service_type",
        "token_balance",
        "is_active",
        "subscription_date",
    ]
    list_filter = ["service_type", "is_active"]
    search_fields = ["user_id"]
    readonly_fields = [
        "id",
        "token_balance",
        "ledger_balance_display",
        "subscription_date",
        "last_rescue_claim_date",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]
    inlines = [TokenTransactionInline]

    def ledger_balance_display(self, obj: Subscription) -> int:
        return obj.ledger_balance()

    ledger_balance_display.short_description = "Ledger balance"

    def has_delete_permission(self, request, obj=None) -> bool:
        """Subscriptions are deactivated, never deleted."""
        return False


@admin.register(TokenTransaction)
class TokenTransactionAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "subscription",
        "transaction_type",
        "token_amount",
        "payment_method",
        "transaction_reference",
        "status",
        "created_at",
    ]
    list_filter = ["transaction_type", "payment_method", "status", "created_at"]
    search_fields = ["transaction_reference", "subscription__user_id"]
    readonly_fields = [
        "id",
        "subscription",
        "transaction_type",
        "token_amount",
        "token_value",
        "payment_method",
        "transaction_reference",
        "status",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for token transactions (append-only log)."""
        return False

    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False


# =============================================================================
# Webhook Admin
# =============================================================================


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Provides visibility into provider callbacks and how they were handled.
    Webhook events are immutable once received.
    """

    list_display = [
        "id",
        "provider",
        "reference",
        "status",
        "source_ip",
        "processed_at",
        "created_at",
    ]
    list_filter = ["provider", "status", "created_at"]
    search_fields = ["id", "reference"]
    readonly_fields = [
        "id",
        "provider",
        "reference",
        "payload",
        "source_ip",
        "status",
        "outcome",
        "processed_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "provider", "reference", "status"),
            },
        ),
        (
            "Processing",
            {
                "fields": ("outcome", "processed_at", "source_ip"),
            },
        ),
        (
            "Payload",
            {
                "fields": ("payload",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for webhook events (audit trail)."""
        return False

    def has_add_permission(self, request) -> bool:
        """Disable adding webhook events through admin."""
        return False
