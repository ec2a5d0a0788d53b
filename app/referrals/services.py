"""
Commission and reward engine for referrals.

This module posts the money a referrer earns from the members they brought
in:
- A commission on each credited payment of a referred member
- A one-time registration reward, either credit points or a commission

Every balance change is a database-side F() increment issued in the same
transaction as the row that justifies it, so a referrer's balances always
equal the sum of their Commission and AffiliateReward rows.

Usage:
    from referrals.services import CommissionService

    result = CommissionService.process_commission("U2", 10000, reference="R1")
    if result.success and result.data:
        print(f"Posted {result.data.commission_amount}")

    CommissionService.process_referral_reward(referral.id, registration_fee=0)
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from django_fsm import can_proceed

from core.exceptions import NotFoundError
from core.services import BaseService, ServiceResult

from referrals.models import COMMISSION_RATE, AffiliateReward, Commission, Member, Referral
from referrals.states import CommissionType, RewardStatus, RewardType

CENT = Decimal("0.01")
REGISTRATION_CREDIT_POINTS = 1000
REGISTRATION_COMMISSION_PERCENTAGE = Decimal("10")


def _to_decimal(value) -> Decimal:
    return Decimal(str(value))


class CommissionService(BaseService):
    """
    Service for referral commissions and registration rewards.

    Expected no-ops (no referrer, duplicate payment) are successful results
    with data=None. Database errors propagate so the posting task can retry.
    """

    @classmethod
    def process_commission(
        cls,
        user_id: str,
        amount,
        payment_type: str | None = None,
        reference: str = "",
    ) -> ServiceResult[Commission]:
        """
        Post the commission earned on a payment by a referred member.

        Args:
            user_id: Member who paid
            amount: Payment amount in FCFA
            payment_type: INITIAL or RENEWAL; derived from the referral's
                first payment date when omitted
            reference: Payment reference, one commission per referral each

        Returns:
            ServiceResult with the Commission, or data=None when there is
            nothing to post
        """
        logger = cls.get_logger()

        member = Member.objects.filter(user_id=user_id).first()
        if member is None or not member.referred_by:
            return ServiceResult.success(None)

        referral = Referral.objects.filter(
            referrer_id=member.referred_by,
            referred_user_id=user_id,
        ).first()
        if referral is None:
            logger.warning(
                "Member has a referrer but no referral row",
                extra={"user_id": user_id, "referrer_id": member.referred_by},
            )
            return ServiceResult.success(None)

        if payment_type is None:
            payment_type = (
                CommissionType.INITIAL
                if referral.first_payment_date is None
                else CommissionType.RENEWAL
            )

        payment_amount = _to_decimal(amount)
        commission_amount = (payment_amount * COMMISSION_RATE).quantize(
            CENT, rounding=ROUND_HALF_UP
        )

        with cls.atomic():
            try:
                with transaction.atomic():
                    commission = Commission.objects.create(
                        referral=referral,
                        referrer_id=referral.referrer_id,
                        referred_user_id=user_id,
                        commission_type=payment_type,
                        payment_amount=payment_amount,
                        commission_rate=COMMISSION_RATE,
                        commission_amount=commission_amount,
                        payment_reference=reference or "",
                    )
            except IntegrityError:
                logger.info(
                    "Commission already posted for payment",
                    extra={"referral_id": str(referral.id), "reference": reference},
                )
                return ServiceResult.success(None)

            Member.objects.get_or_create(user_id=referral.referrer_id)
            Member.objects.filter(user_id=referral.referrer_id).update(
                available_commissions=F("available_commissions") + commission_amount,
                total_commissions_earned=F("total_commissions_earned") + commission_amount,
                updated_at=timezone.now(),
            )

            now = timezone.now()
            referral_updates = {
                "total_commissions_generated": F("total_commissions_generated")
                + commission_amount,
                "updated_at": now,
            }
            if payment_type == CommissionType.INITIAL:
                referral_updates["first_payment_date"] = now
            else:
                referral_updates["last_renewal_date"] = now
            Referral.objects.filter(pk=referral.pk).update(**referral_updates)

        logger.info(
            f"Commission of {commission_amount} posted for referrer {referral.referrer_id}",
            extra={
                "commission_id": str(commission.id),
                "referred_user_id": user_id,
                "commission_type": payment_type,
                "reference": reference,
            },
        )
        return ServiceResult.success(commission)

    @classmethod
    def process_referral_reward(
        cls,
        referral_id,
        registration_fee,
    ) -> ServiceResult[AffiliateReward]:
        """
        Award the one-time registration reward of a referral.

        A registration that carried a fee earns the referrer 10% of it as
        commission; a free registration earns a flat 1000 credit points.
        Exactly one of the two balance pairs is updated, and a second call
        for the same referral fails with ALREADY_REWARDED.

        Args:
            referral_id: Referral being rewarded
            registration_fee: Fee paid at registration (FCFA), 0 if free

        Returns:
            ServiceResult with the AffiliateReward
        """
        try:
            referral = Referral.objects.get(id=referral_id)
        except Referral.DoesNotExist:
            return ServiceResult.from_exception(NotFoundError("Referral not found"))

        fee = _to_decimal(registration_fee)
        if fee > 0:
            reward_type = RewardType.COMMISSION
            credit_points = 0
            percentage = REGISTRATION_COMMISSION_PERCENTAGE
            commission_amount = (fee * percentage / 100).quantize(
                CENT, rounding=ROUND_HALF_UP
            )
        else:
            reward_type = RewardType.CREDIT_POINTS
            credit_points = REGISTRATION_CREDIT_POINTS
            percentage = Decimal("0")
            commission_amount = Decimal("0")

        with cls.atomic():
            try:
                with transaction.atomic():
                    reward = AffiliateReward.objects.create(
                        referral=referral,
                        referrer_id=referral.referrer_id,
                        referred_user_id=referral.referred_user_id,
                        reward_type=reward_type,
                        credit_points_awarded=credit_points,
                        commission_percentage=percentage,
                        commission_amount=commission_amount,
                        registration_fee=fee,
                        status=RewardStatus.AWARDED,
                        awarded_at=timezone.now(),
                    )
            except IntegrityError:
                return ServiceResult.failure(
                    "Referral already rewarded",
                    error_code="ALREADY_REWARDED",
                )

            Member.objects.get_or_create(user_id=referral.referrer_id)
            referrer = Member.objects.filter(user_id=referral.referrer_id)
            if reward_type == RewardType.CREDIT_POINTS:
                referrer.update(
                    current_credits=F("current_credits") + credit_points,
                    total_credits_earned=F("total_credits_earned") + credit_points,
                    updated_at=timezone.now(),
                )
            else:
                referrer.update(
                    available_commissions=F("available_commissions") + commission_amount,
                    total_commissions_earned=F("total_commissions_earned")
                    + commission_amount,
                    updated_at=timezone.now(),
                )

        cls.get_logger().info(
            f"Referral reward awarded: {reward_type}",
            extra={
                "referral_id": str(referral.id),
                "referrer_id": referral.referrer_id,
                "credit_points": credit_points,
                "commission_amount": str(commission_amount),
            },
        )
        return ServiceResult.success(reward)

    @classmethod
    def mark_commission_paid(cls, commission_id) -> ServiceResult[Commission]:
        """
        Record the payout of a pending commission.

        Decrements the referrer's available_commissions by the commission
        amount; total_commissions_earned is lifetime and stays.
        """
        with cls.atomic():
            try:
                commission = Commission.objects.select_for_update().get(id=commission_id)
            except Commission.DoesNotExist:
                return ServiceResult.from_exception(NotFoundError("Commission not found"))

            if not can_proceed(commission.mark_paid):
                return ServiceResult.failure(
                    f"Cannot pay commission in status {commission.status}",
                    error_code="INVALID_STATE",
                )

            commission.mark_paid()
            commission.save()

            Member.objects.filter(user_id=commission.referrer_id).update(
                available_commissions=F("available_commissions")
                - commission.commission_amount,
                updated_at=timezone.now(),
            )

        cls.get_logger().info(
            f"Commission {commission.id} paid",
            extra={"referrer_id": commission.referrer_id},
        )
        return ServiceResult.success(commission)

    @classmethod
    def cancel_commission(cls, commission_id) -> ServiceResult[Commission]:
        """
        Cancel a pending commission and reverse what posting it added.
        """
        with cls.atomic():
            try:
                commission = Commission.objects.select_for_update().get(id=commission_id)
            except Commission.DoesNotExist:
                return ServiceResult.from_exception(NotFoundError("Commission not found"))

            if not can_proceed(commission.cancel):
                return ServiceResult.failure(
                    f"Cannot cancel commission in status {commission.status}",
                    error_code="INVALID_STATE",
                )

            commission.cancel()
            commission.save()

            amount = commission.commission_amount
            Member.objects.filter(user_id=commission.referrer_id).update(
                available_commissions=F("available_commissions") - amount,
                total_commissions_earned=F("total_commissions_earned") - amount,
                updated_at=timezone.now(),
            )
            Referral.objects.filter(pk=commission.referral_id).update(
                total_commissions_generated=F("total_commissions_generated") - amount,
                updated_at=timezone.now(),
            )

        return ServiceResult.success(commission)
