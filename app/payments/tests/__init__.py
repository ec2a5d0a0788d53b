"""
Tests for payments app.

This package contains test modules for:
- test_adapters.py: Orange Money, SAMA Money and CinetPay adapter tests
- test_models.py: PaymentAttempt, Subscription, TokenTransaction, WebhookEvent
- test_credit_engine.py: Exactly-once crediting
- test_orchestrator.py / test_verification.py: Service layer
- test_webhooks.py / test_parsers.py: Webhook intake
- test_views.py: API endpoint tests
- test_scenarios.py: Full purchase journeys

Usage:
    pytest payments/tests/
    pytest payments/tests/test_credit_engine.py
"""
