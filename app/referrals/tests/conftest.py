"""
Pytest fixtures for referral tests.

The standard cast is a referrer REF1 who brought in member U2.
"""

import pytest

from referrals.tests.factories import MemberFactory, ReferralFactory


@pytest.fixture
def referrer(db):
    return MemberFactory(user_id="REF1")


@pytest.fixture
def referred_member(referrer):
    return MemberFactory(user_id="U2", referred_by=referrer.user_id)


@pytest.fixture
def referral(referrer, referred_member):
    return ReferralFactory(
        referrer_id=referrer.user_id,
        referred_user_id=referred_member.user_id,
        referral_code="REF1CODE",
    )
