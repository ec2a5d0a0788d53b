"""
Referral domain models.

- Member: Referral profile and referrer balances
- Referral: Referrer to referred-user link
- Commission: Per-payment commission owed to a referrer
- AffiliateReward: One-time registration reward per referral
"""

from referrals.models.affiliate_reward import AffiliateReward
from referrals.models.commission import COMMISSION_RATE, Commission
from referrals.models.member import Member
from referrals.models.referral import Referral

__all__ = [
    "AffiliateReward",
    "COMMISSION_RATE",
    "Commission",
    "Member",
    "Referral",
]
