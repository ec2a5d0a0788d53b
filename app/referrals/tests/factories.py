"""
Factory Boy factories for referral test data.

Usage:
    from referrals.tests.factories import MemberFactory, ReferralFactory

    referral = ReferralFactory(referrer_id="REF1", referred_user_id="U2")
    MemberFactory(user_id="U2", referred_by="REF1")
"""

from decimal import Decimal

import factory

from referrals.models import Commission, Member, Referral
from referrals.states import CommissionType


class MemberFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Member
        django_get_or_create = ("user_id",)

    user_id = factory.Sequence(lambda n: f"MEMBER{n}")
    referred_by = None


class ReferralFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Referral

    referrer_id = factory.Sequence(lambda n: f"REFERRER{n}")
    referred_user_id = factory.Sequence(lambda n: f"REFERRED{n}")
    referral_code = factory.Sequence(lambda n: f"CODE{n:04d}")


class CommissionFactory(factory.django.DjangoModelFactory):
    """
    Factory for pending Commission rows.

    Note: does not touch member balances; post through CommissionService
    when balances must match.
    """

    class Meta:
        model = Commission

    referral = factory.SubFactory(ReferralFactory)
    referrer_id = factory.SelfAttribute("referral.referrer_id")
    referred_user_id = factory.SelfAttribute("referral.referred_user_id")
    commission_type = CommissionType.INITIAL
    payment_amount = Decimal("10000")
    commission_amount = factory.LazyAttribute(lambda o: o.payment_amount / 10)
    payment_reference = factory.Sequence(lambda n: f"PAY{n}")
