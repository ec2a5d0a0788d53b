"""
Tests for payments API views.

Provider HTTP calls are patched at requests.request; the orchestrator,
credit engine and database run for real.
"""

from unittest.mock import patch

import pytest
import requests
from django.urls import reverse

from payments.models import PaymentAttempt
from payments.state_machines import AttemptStatus, ServiceType, TransactionType
from payments.tests.factories import SubscriptionFactory, TokenTransactionFactory

REQUESTS_PATH = "payments.adapters.base.requests.request"
ORANGE_TOKEN_BODY = {"access_token": "orange-token-abcdef", "expires_in": 3600}
SAMA_AUTH_BODY = {"status": 1, "resultat": {"token": "sama-token-123456"}}


def initiate_url(provider: str) -> str:
    return reverse("payments:initiate", kwargs={"provider": provider})


def purchase(**overrides) -> dict:
    body = {
        "userId": "U1",
        "amount": 7500,
        "phone": "76123456",
        "metadata": {"serviceType": "auto", "tokens": 10},
    }
    body.update(overrides)
    return body


# =============================================================================
# Initiate
# =============================================================================


class TestInitiatePaymentView:
    def test_orange_money_checkout(self, api_client, gateway_settings, fake_response, db):
        with patch(REQUESTS_PATH) as mock_request:
            mock_request.side_effect = [
                fake_response(200, ORANGE_TOKEN_BODY),
                fake_response(
                    201,
                    {"payment_url": "https://webpay.orange/abc", "pay_token": "om-token-1"},
                ),
            ]
            response = api_client.post(initiate_url("orange_money"), purchase(), format="json")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["initiated"] is True
        assert body["paymentUrl"] == "https://webpay.orange/abc"
        assert body["message"] == "Paiement initié"
        assert body["data"] == {"provider": "orange_money", "payToken": "om-token-1"}
        assert body["reference"].startswith("TOKENS_auto_U1_")

        attempt = PaymentAttempt.objects.get(reference=body["reference"])
        assert attempt.status == AttemptStatus.PENDING

    def test_sama_push_has_no_url(self, api_client, gateway_settings, fake_response, db):
        with patch(REQUESTS_PATH) as mock_request:
            mock_request.side_effect = [
                fake_response(200, SAMA_AUTH_BODY),
                fake_response(200, {"status": 1, "msg": "OK", "transNumber": "TX1"}),
            ]
            response = api_client.post(
                initiate_url("sama"),
                purchase(amount=5000, metadata={"serviceType": "motors", "tokens": 20}),
                format="json",
            )

        assert response.status_code == 200
        assert response.json()["paymentUrl"] is None
        assert response.json()["data"]["payToken"] == "TX1"

    def test_sama_refusal(self, api_client, gateway_settings, fake_response, db):
        with patch(REQUESTS_PATH) as mock_request:
            mock_request.side_effect = [
                fake_response(200, SAMA_AUTH_BODY),
                fake_response(200, {"status": 1013, "msg": "Solde insuffisant"}),
            ]
            response = api_client.post(initiate_url("sama_money"), purchase(reference="R-1"), format="json")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "PAYMENT_REJECTED"
        assert body["error"].startswith("Solde insuffisant sur votre compte SAMA Money")
        assert body["reference"] == "R-1"
        assert body["providerCode"] == "1013"
        assert PaymentAttempt.objects.count() == 0

    def test_invalid_sama_phone(self, api_client, gateway_settings, db):
        with patch(REQUESTS_PATH) as mock_request:
            response = api_client.post(initiate_url("sama"), purchase(phone="123"), format="json")

        mock_request.assert_not_called()
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_PHONE"

    @pytest.mark.parametrize(
        "body",
        [
            purchase(userId=""),
            purchase(amount=0),
            purchase(metadata={"serviceType": "boats"}),
            purchase(metadata={"serviceType": "auto", "tokens": 5}),
            {"userId": "U1", "amount": 7500},
        ],
    )
    def test_request_validation(self, api_client, db, body):
        response = api_client.post(initiate_url("orange_money"), body, format="json")

        assert response.status_code == 400

    def test_user_id_with_underscore_rejected(self, api_client, db):
        with patch(REQUESTS_PATH) as mock_request:
            response = api_client.post(
                initiate_url("orange_money"), purchase(userId="usr_1"), format="json"
            )

        mock_request.assert_not_called()
        assert response.status_code == 400
        assert "userId" in response.json()

    def test_amount_mismatch(self, api_client, gateway_settings, db):
        response = api_client.post(initiate_url("orange_money"), purchase(amount=7000), format="json")

        assert response.status_code == 400
        assert response.json()["error_code"] == "AMOUNT_MISMATCH"

    def test_unknown_provider(self, api_client, db):
        response = api_client.post(initiate_url("paypal"), purchase(), format="json")

        assert response.status_code == 400
        assert response.json()["error_code"] == "UNKNOWN_PROVIDER"

    def test_missing_configuration_is_500(self, api_client, gateway_settings, db):
        gateway_settings.CINETPAY_API_KEY = ""

        response = api_client.post(initiate_url("cinetpay"), purchase(), format="json")

        assert response.status_code == 500
        assert response.json()["error_code"] == "CONFIGURATION_ERROR"

    def test_auth_failure_is_502(self, api_client, gateway_settings, fake_response, db):
        with patch(REQUESTS_PATH, return_value=fake_response(401, {"error": "invalid_client"})):
            response = api_client.post(initiate_url("orange"), purchase(), format="json")

        assert response.status_code == 502
        assert response.json()["error_code"] == "GATEWAY_AUTH_ERROR"

    def test_timeout_is_504(self, api_client, gateway_settings, db):
        with patch(REQUESTS_PATH, side_effect=requests.Timeout()):
            response = api_client.post(initiate_url("orange"), purchase(), format="json")

        assert response.status_code == 504

    def test_credentials_never_leak(self, api_client, gateway_settings, fake_response, db):
        with patch(REQUESTS_PATH, return_value=fake_response(401, text="denied")):
            response = api_client.post(initiate_url("orange"), purchase(), format="json")

        assert gateway_settings.ORANGE_BASIC_AUTH not in response.content.decode()
        assert gateway_settings.ORANGE_MERCHANT_KEY not in response.content.decode()


# =============================================================================
# Verify
# =============================================================================


class TestVerifyPaymentView:
    url = "/api/v1/payments/verify/"

    def test_confirmed_and_credited(self, api_client, gateway_settings, fake_response, sama_attempt):
        SubscriptionFactory(user_id="U1", service_type=ServiceType.MOTORS)

        with patch(REQUESTS_PATH, return_value=fake_response(200, {"status": 1, "montant": "5000"})):
            response = api_client.post(
                self.url, {"reference": sama_attempt.reference, "gateway": "sama_money"}, format="json"
            )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "status": "completed",
            "reference": sama_attempt.reference,
            "credited": True,
        }

    def test_local_status(self, api_client, pending_attempt):
        pending_attempt.method = "cinetpay"
        pending_attempt.save()

        response = api_client.post(self.url, {"reference": pending_attempt.reference}, format="json")

        assert response.status_code == 200
        assert response.json()["status"] == "pending"
        assert response.json()["credited"] is False

    def test_unknown_reference(self, api_client, db):
        response = api_client.post(self.url, {"reference": "TOKENS_auto_X_1"}, format="json")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_reference_required(self, api_client, db):
        assert api_client.post(self.url, {}, format="json").status_code == 400

    def test_provider_unreachable(self, api_client, gateway_settings, sama_attempt):
        with patch(REQUESTS_PATH, side_effect=requests.ConnectionError()):
            response = api_client.post(self.url, {"reference": sama_attempt.reference}, format="json")

        assert response.status_code == 504


# =============================================================================
# Read Endpoints
# =============================================================================


class TestSubscriptionListView:
    def test_lists_user_subscriptions(self, api_client, db):
        SubscriptionFactory(user_id="U1", service_type=ServiceType.MOTORS, token_balance=20)
        SubscriptionFactory(user_id="U1", service_type=ServiceType.AUTO, token_balance=10)
        SubscriptionFactory(user_id="U2", service_type=ServiceType.AUTO)

        response = api_client.get(reverse("payments:subscriptions"), {"userId": "U1"})

        assert response.status_code == 200
        body = response.json()
        assert [s["serviceType"] for s in body] == ["auto", "motors"]
        assert body[0]["tokenBalance"] == 10
        assert body[0]["userId"] == "U1"
        assert body[0]["isActive"] is True

    def test_user_required(self, api_client, db):
        assert api_client.get(reverse("payments:subscriptions")).status_code == 400


class TestTokenTransactionListView:
    def test_filter_by_user(self, api_client, auto_subscription):
        TokenTransactionFactory(subscription=auto_subscription, transaction_reference="R1")
        TokenTransactionFactory(transaction_reference="OTHER")

        response = api_client.get(reverse("payments:transactions"), {"userId": "U1"})

        assert response.status_code == 200
        body = response.json()
        assert len(body) == 1
        assert body[0]["transactionReference"] == "R1"
        assert body[0]["transactionType"] == TransactionType.PURCHASE
        assert body[0]["subscriptionId"] == auto_subscription.pk

    def test_filter_by_subscription(self, api_client, auto_subscription):
        TokenTransactionFactory(subscription=auto_subscription)
        TokenTransactionFactory(subscription=auto_subscription)
        TokenTransactionFactory()

        response = api_client.get(
            reverse("payments:transactions"), {"subscriptionId": str(auto_subscription.pk)}
        )

        assert len(response.json()) == 2

    def test_filter_required(self, api_client, db):
        assert api_client.get(reverse("payments:transactions")).status_code == 400

    def test_subscription_id_must_be_numeric(self, api_client, db):
        response = api_client.get(reverse("payments:transactions"), {"subscriptionId": "abc"})

        assert response.status_code == 400


# =============================================================================
# Health Check
# =============================================================================


class TestHealthCheck:
    def test_healthy(self, client, db):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "connected"
