"""
Referral admin configuration.

Balances and commission statuses change through CommissionService; the
admin exposes them read-only, plus pay/cancel actions for pending
commissions.
"""

from django.contrib import admin

from referrals.models import AffiliateReward, Commission, Member, Referral
from referrals.services import CommissionService


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = [
        "user_id",
        "referred_by",
        "available_commissions",
        "total_commissions_earned",
        "current_credits",
        "created_at",
    ]
    search_fields = ["user_id", "referred_by"]
    readonly_fields = [
        "available_commissions",
        "total_commissions_earned",
        "current_credits",
        "total_credits_earned",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]


@admin.register(Referral)
class ReferralAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "referrer_id",
        "referred_user_id",
        "referral_code",
        "referral_type",
        "status",
        "total_commissions_generated",
        "created_at",
    ]
    list_filter = ["referral_type", "status"]
    search_fields = ["referrer_id", "referred_user_id", "referral_code"]
    readonly_fields = [
        "id",
        "first_payment_date",
        "last_renewal_date",
        "total_commissions_generated",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]


@admin.register(Commission)
class CommissionAdmin(admin.ModelAdmin):
    """
    Admin configuration for Commission.

    Commissions are immutable; pay or cancel them with the bulk actions.
    """

    list_display = [
        "id",
        "referrer_id",
        "referred_user_id",
        "commission_type",
        "commission_amount",
        "status",
        "created_at",
    ]
    list_filter = ["status", "commission_type", "created_at"]
    search_fields = ["referrer_id", "referred_user_id", "payment_reference"]
    readonly_fields = [
        "id",
        "referral",
        "referrer_id",
        "referred_user_id",
        "commission_type",
        "payment_amount",
        "commission_rate",
        "commission_amount",
        "payment_reference",
        "status",
        "paid_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    actions = ["mark_paid", "cancel"]

    @admin.action(description="Mark selected commissions as paid")
    def mark_paid(self, request, queryset):
        paid = sum(
            1 for pk in queryset.values_list("id", flat=True)
            if CommissionService.mark_commission_paid(pk).success
        )
        self.message_user(request, f"{paid} commission(s) marked as paid.")

    @admin.action(description="Cancel selected commissions")
    def cancel(self, request, queryset):
        cancelled = sum(
            1 for pk in queryset.values_list("id", flat=True)
            if CommissionService.cancel_commission(pk).success
        )
        self.message_user(request, f"{cancelled} commission(s) cancelled.")

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for commissions (audit trail)."""
        return False

    def has_add_permission(self, request) -> bool:
        return False


@admin.register(AffiliateReward)
class AffiliateRewardAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "referrer_id",
        "referred_user_id",
        "reward_type",
        "credit_points_awarded",
        "commission_amount",
        "status",
        "awarded_at",
    ]
    list_filter = ["reward_type", "status"]
    search_fields = ["referrer_id", "referred_user_id"]
    readonly_fields = [
        "id",
        "referral",
        "referrer_id",
        "referred_user_id",
        "reward_type",
        "credit_points_awarded",
        "commission_percentage",
        "commission_amount",
        "registration_fee",
        "status",
        "awarded_at",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]

    def has_delete_permission(self, request, obj=None) -> bool:
        return False

    def has_add_permission(self, request) -> bool:
        return False
