"""
Tests for the tokens_credited receiver.

Commission posting runs in its own transaction after the credit commits;
with eager Celery the posting happens inside the on-commit callback.
"""

from decimal import Decimal
from unittest.mock import patch

from payments.services import CreditRequest, credit
from payments.signals import tokens_credited
from payments.state_machines import ServiceType
from payments.tests.factories import PaymentAttemptFactory, SubscriptionFactory
from referrals.models import Commission, Member
from referrals.signals import queue_referral_commission
from referrals.tests.factories import MemberFactory


def send_credited(user_id="U2", amount=10000, reference="R1"):
    tokens_credited.send(
        sender=credit,
        user_id=user_id,
        service_type=ServiceType.AUTO,
        tokens=10,
        amount=amount,
        reference=reference,
        method="orange_money",
        transaction_id="tx-1",
    )


class TestQueueReferralCommission:
    def test_referred_member_queues_posting(self, referral):
        with patch("referrals.tasks.post_referral_commission.delay") as mock_delay:
            send_credited()

        mock_delay.assert_called_once_with(user_id="U2", amount=10000, reference="R1")

    def test_member_without_referrer_is_ignored(self, db):
        MemberFactory(user_id="U5")

        with patch("referrals.tasks.post_referral_commission.delay") as mock_delay:
            send_credited(user_id="U5")

        mock_delay.assert_not_called()

    def test_blank_referrer_is_ignored(self, db):
        MemberFactory(user_id="U6", referred_by="")

        with patch("referrals.tasks.post_referral_commission.delay") as mock_delay:
            send_credited(user_id="U6")

        mock_delay.assert_not_called()

    def test_unknown_user_is_ignored(self, db):
        with patch("referrals.tasks.post_referral_commission.delay") as mock_delay:
            queue_referral_commission(sender=credit, user_id="NOBODY", amount=1, reference="R")

        mock_delay.assert_not_called()


class TestCreditToCommission:
    def test_credit_posts_commission_after_commit(self, referral, django_capture_on_commit_callbacks):
        SubscriptionFactory(user_id="U2", service_type=ServiceType.AUTO)
        attempt = PaymentAttemptFactory(user_id="U2", service_type=ServiceType.AUTO, tokens_requested=None, amount=10000)

        with django_capture_on_commit_callbacks(execute=True):
            result = credit(CreditRequest(reference=attempt.reference, amount=10000))

        assert result.credited is True
        commission = Commission.objects.get()
        assert commission.payment_reference == attempt.reference
        assert commission.commission_amount == Decimal("1000.00")
        assert Member.objects.get(user_id="REF1").available_commissions == Decimal("1000")

    def test_commission_failure_keeps_credit(self, referral, django_capture_on_commit_callbacks):
        subscription = SubscriptionFactory(user_id="U2", service_type=ServiceType.AUTO)

        with patch(
            "referrals.tasks.CommissionService.process_commission",
            side_effect=RuntimeError("commission store down"),
        ):
            with django_capture_on_commit_callbacks(execute=True):
                result = credit(CreditRequest(reference="TOKENS_auto_U2_1", amount=7500))

        subscription.refresh_from_db()
        assert result.credited is True
        assert subscription.token_balance == 10
        assert Commission.objects.count() == 0
