"""
End-to-end purchase journeys.

Each test drives the public HTTP surface (initiate, webhook, verify) with
provider HTTP calls patched, and checks balances, attempts and referral
commissions in the database.
"""

import json
from decimal import Decimal
from unittest.mock import patch

from django.urls import reverse

from payments.models import PaymentAttempt, TokenTransaction, WebhookEvent
from payments.services import CreditRequest, SkipReason, credit
from payments.state_machines import AttemptStatus, ServiceType, WebhookEventStatus
from payments.tests.factories import SubscriptionFactory
from referrals.models import Commission, Member
from referrals.tests.factories import MemberFactory, ReferralFactory

REQUESTS_PATH = "payments.adapters.base.requests.request"
ORANGE_TOKEN_BODY = {"access_token": "orange-token-abcdef", "expires_in": 3600}


def post_json(client, url, body):
    return client.post(url, data=json.dumps(body), content_type="application/json")


class TestPurchaseJourneys:
    def test_orange_money_purchase_credited_by_webhook(
        self, client, gateway_settings, fake_response, db
    ):
        """Initiate with a caller reference, then confirm through the webhook."""
        subscription = SubscriptionFactory(user_id="U1", service_type=ServiceType.MOTORS)

        with patch(REQUESTS_PATH) as mock_request:
            mock_request.side_effect = [
                fake_response(200, ORANGE_TOKEN_BODY),
                fake_response(201, {"payment_url": "https://webpay/R1", "pay_token": "pt"}),
            ]
            response = post_json(
                client,
                reverse("payments:initiate", kwargs={"provider": "orange_money"}),
                {
                    "reference": "R1",
                    "userId": "U1",
                    "amount": 5000,
                    "metadata": {"serviceType": "motors", "tokens": 20},
                },
            )

        assert response.status_code == 200
        assert PaymentAttempt.objects.get(reference="R1").status == AttemptStatus.PENDING
        subscription.refresh_from_db()
        assert subscription.token_balance == 0

        response = post_json(
            client,
            reverse("payments:webhook", kwargs={"provider": "orange_money"}),
            {"order_id": "R1", "status": "success", "amount": 5000},
        )

        subscription.refresh_from_db()
        assert response.json() == {"success": True}
        assert subscription.token_balance == 20
        assert PaymentAttempt.objects.get(reference="R1").status == AttemptStatus.COMPLETED

    def test_duplicate_webhook_leaves_balance_unchanged(self, client, pending_attempt, auto_subscription):
        url = reverse("payments:webhook", kwargs={"provider": "orange_money"})
        payload = {"order_id": pending_attempt.reference, "status": "success", "amount": 7500}

        post_json(client, url, payload)
        auto_subscription.refresh_from_db()
        after_first = auto_subscription.token_balance

        second = post_json(client, url, payload)
        auto_subscription.refresh_from_db()

        assert second.status_code == 200
        assert auto_subscription.token_balance == after_first == 10
        assert auto_subscription.ledger_balance() == 10
        assert list(WebhookEvent.objects.order_by("created_at").values_list("status", flat=True)) == [
            WebhookEventStatus.PROCESSED,
            WebhookEventStatus.SKIPPED,
        ]

    def test_sama_insufficient_balance_message(self, client, gateway_settings, fake_response, db):
        with patch(REQUESTS_PATH) as mock_request:
            mock_request.side_effect = [
                fake_response(200, {"status": 1, "resultat": {"token": "sama-token-123456"}}),
                fake_response(200, {"status": 1013, "msg": "Solde insuffisant"}),
            ]
            response = post_json(
                client,
                reverse("payments:initiate", kwargs={"provider": "sama_money"}),
                {
                    "userId": "U1",
                    "amount": 7500,
                    "phone": "76123456",
                    "metadata": {"serviceType": "auto", "tokens": 10},
                },
            )

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Solde insuffisant sur votre compte SAMA Money. "
            "Veuillez recharger votre compte et réessayer."
        )

    def test_cinetpay_webhook_identity_from_transaction_id(self, client, db):
        subscription = SubscriptionFactory(user_id="USER123", service_type=ServiceType.AUTO)

        response = client.post(
            reverse("payments:webhook", kwargs={"provider": "cinetpay"}),
            data={"cpm_trans_id": "TOKENS_auto_USER123_1700000000", "cpm_result": "ACCEPTED", "cpm_amount": "7500"},
        )

        subscription.refresh_from_db()
        assert response.status_code == 200
        assert subscription.token_balance == 10
        tx = TokenTransaction.objects.get()
        assert tx.transaction_reference == "TOKENS_auto_USER123_1700000000"
        assert tx.token_amount == 10

    def test_referred_member_payment_posts_commission(
        self, client, django_capture_on_commit_callbacks, db
    ):
        MemberFactory(user_id="REF1")
        MemberFactory(user_id="U2", referred_by="REF1")
        ReferralFactory(referrer_id="REF1", referred_user_id="U2")
        SubscriptionFactory(user_id="U2", service_type=ServiceType.SCHOOL_FEES)

        with django_capture_on_commit_callbacks(execute=True):
            post_json(
                client,
                reverse("payments:webhook", kwargs={"provider": "cinetpay"}),
                {"transaction_id": "TOKENS_school_fees_U2_1700000000000", "status": "ACCEPTED", "amount": 10000},
            )

        commission = Commission.objects.get()
        assert commission.commission_amount == Decimal("1000.00")
        assert commission.referred_user_id == "U2"
        assert Member.objects.get(user_id="REF1").available_commissions == Decimal("1000")

    def test_unresolvable_confirmation_writes_nothing(self, db):
        result = credit(CreditRequest(reference="EXTERNAL-42", amount=7500, method="orange_money"))

        assert result.credited is False
        assert result.skip_reason == SkipReason.UNRESOLVED_IDENTITY
        assert PaymentAttempt.objects.count() == 0
        assert TokenTransaction.objects.count() == 0
