"""
Pytest fixtures for payment tests.

This module provides fixtures for subscriptions, attempts and provider
settings. Provider HTTP calls are never made: tests patch
payments.adapters.base.requests.request and feed it fake responses built
with make_response().

Usage:
    def test_credit(auto_subscription, pending_attempt):
        result = credit(CreditRequest(reference=pending_attempt.reference))
        assert result.credited
"""

import json
from unittest.mock import MagicMock

import pytest
import requests
from rest_framework.test import APIClient

from payments.state_machines import PaymentMethod, ServiceType
from payments.tests.factories import PaymentAttemptFactory, SubscriptionFactory


# =============================================================================
# HTTP Helpers
# =============================================================================


def make_response(status_code: int = 200, body=None, text: str | None = None):
    """Build a requests.Response-like mock."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    if body is not None:
        response.json.return_value = body
        response.text = json.dumps(body)
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.text = text or ""
    return response


@pytest.fixture
def fake_response():
    """The make_response builder, for tests that patch requests."""
    return make_response


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def gateway_settings(settings):
    """Credentials and URLs for every provider."""
    settings.ORANGE_BASIC_AUTH = "b3JhbmdlOnNlY3JldA=="
    settings.ORANGE_MERCHANT_KEY = "merchant-key-123456"
    settings.ORANGE_ENV = "dev"
    settings.ORANGE_RETURN_URL = "https://app.example.com/payment/return"
    settings.ORANGE_CANCEL_URL = "https://app.example.com/payment/cancel"
    settings.ORANGE_NOTIF_URL = "https://api.example.com/api/v1/payments/webhook/orange/"
    settings.SAMA_BASE_URL = "https://sama.example.com/V1"
    settings.SAMA_TRANSAC = "transac-header"
    settings.SAMA_CMD = "b109"
    settings.SAMA_CLE_PUBLIQUE = "public-key-abcdef"
    settings.SAMA_CALLBACK_URL = "https://api.example.com/api/v1/payments/webhook/sama/"
    settings.CINETPAY_API_KEY = "cinetpay-api-key-0001"
    settings.CINETPAY_SITE_ID = "445566"
    settings.CINETPAY_NOTIFY_URL = "https://api.example.com/api/v1/payments/webhook/cinetpay/"
    settings.CINETPAY_RETURN_URL = "https://app.example.com/payment/done"
    settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS = 10
    settings.PAYMENT_GATEWAY_MAX_RETRIES = 3
    settings.PAYMENTS_CREDIT_ON_VERIFY = True
    return settings


# =============================================================================
# Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    return APIClient()


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def auto_subscription(db):
    """Subscription of U1 to the auto service, empty balance."""
    return SubscriptionFactory(user_id="U1", service_type=ServiceType.AUTO)


@pytest.fixture
def pending_attempt(db):
    """Pending Orange Money attempt: U1 buys 10 auto tokens for 7500."""
    return PaymentAttemptFactory(
        reference="TOKENS_auto_U1_1700000000000",
        user_id="U1",
        service_type=ServiceType.AUTO,
        tokens_requested=10,
        amount=7500,
        method=PaymentMethod.ORANGE_MONEY,
    )


@pytest.fixture
def sama_attempt(db):
    """Pending SAMA Money attempt: U1 buys 20 motors tokens for 5000."""
    return PaymentAttemptFactory(
        reference="TOKENS_motors_U1_1700000000001",
        user_id="U1",
        service_type=ServiceType.MOTORS,
        tokens_requested=20,
        amount=5000,
        method=PaymentMethod.SAMA_MONEY,
        gateway_payload={"pay_token": "SAMA-TX-42"},
    )
