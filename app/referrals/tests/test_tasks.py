"""
Tests for referral Celery tasks.
"""

from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import OperationalError

from core.services import ServiceResult
from referrals.models import Commission
from referrals.tasks import post_referral_commission


class TestPostReferralCommission:
    def test_posts_commission(self, referral):
        result = post_referral_commission.delay(user_id="U2", amount=10000, reference="R1").get()

        commission = Commission.objects.get()
        assert result == {"reference": "R1", "commission_id": str(commission.id)}
        assert commission.commission_amount == Decimal("1000.00")

    def test_retry_is_idempotent(self, referral):
        post_referral_commission.delay(user_id="U2", amount=10000, reference="R1")
        result = post_referral_commission.delay(user_id="U2", amount=10000, reference="R1").get()

        assert result == {"reference": "R1", "commission_id": None}
        assert Commission.objects.count() == 1

    def test_nothing_owed(self, db):
        result = post_referral_commission.delay(user_id="U9", amount=10000, reference="R1").get()

        assert result["commission_id"] is None

    def test_failure_result_reported(self, referral):
        with patch(
            "referrals.tasks.CommissionService.process_commission",
            return_value=ServiceResult.failure("bad amount", error_code="INVALID"),
        ):
            result = post_referral_commission.delay(user_id="U2", amount=10000, reference="R1").get()

        assert result == {"reference": "R1", "commission_id": None, "error": "bad amount"}

    def test_database_error_raises_for_retry(self, referral):
        with patch(
            "referrals.tasks.CommissionService.process_commission",
            side_effect=OperationalError("database is locked"),
        ):
            with pytest.raises(OperationalError):
                post_referral_commission.run(user_id="U2", amount=10000, reference="R1")
