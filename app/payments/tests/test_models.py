"""
Tests for payment domain models.

Tests constraints, defaults, conditional status transitions and the
subscription ledger for all payment models.
"""

import uuid
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone

import pytest
from django.db import IntegrityError
from django.db.models import F
from django.utils import timezone
from freezegun import freeze_time

from payments.models import PaymentAttempt, Subscription, TokenTransaction, WebhookEvent
from payments.state_machines import (
    AttemptStatus,
    PaymentMethod,
    ServiceType,
    TransactionStatus,
    TransactionType,
    WebhookEventStatus,
)
from payments.tests.factories import (
    PaymentAttemptFactory,
    SubscriptionFactory,
    TokenTransactionFactory,
    WebhookEventFactory,
)


# =============================================================================
# PaymentAttempt Tests
# =============================================================================


class TestPaymentAttemptModel:
    """Tests for PaymentAttempt model."""

    def test_defaults(self, db):
        """New attempts start pending with no terminal timestamps."""
        attempt = PaymentAttempt.objects.create(
            reference="TOKENS_auto_U1_1",
            amount=7500,
            method=PaymentMethod.ORANGE_MONEY,
        )

        assert isinstance(attempt.pk, uuid.UUID)
        assert attempt.status == AttemptStatus.PENDING
        assert attempt.is_pending is True
        assert attempt.is_completed is False
        assert attempt.gateway_payload == {}
        assert attempt.completed_at is None
        assert attempt.failed_at is None

    def test_reference_unique(self, db):
        """Two attempts cannot share a reference."""
        PaymentAttemptFactory(reference="TOKENS_auto_U1_1")

        with pytest.raises(IntegrityError):
            PaymentAttemptFactory(reference="TOKENS_auto_U1_1")

    def test_amount_non_negative(self, db):
        with pytest.raises(IntegrityError):
            PaymentAttemptFactory(amount=-1)

    def test_factory_reference_is_parseable(self, db):
        attempt = PaymentAttemptFactory(user_id="U5", service_type=ServiceType.MOTORS)

        assert attempt.reference.startswith("TOKENS_motors_U5_")
        assert attempt.amount == 2500


class TestPaymentAttemptTransition:
    """Tests for the conditional UPDATE used to claim references."""

    def test_pending_to_completed(self, pending_attempt):
        updated = PaymentAttempt.objects.transition(
            pending_attempt.reference, AttemptStatus.PENDING, AttemptStatus.COMPLETED
        )

        pending_attempt.refresh_from_db()
        assert updated == 1
        assert pending_attempt.status == AttemptStatus.COMPLETED
        assert pending_attempt.completed_at is not None
        assert pending_attempt.failed_at is None

    def test_second_claim_loses(self, pending_attempt):
        """Only one caller can move the row out of pending."""
        first = PaymentAttempt.objects.transition(
            pending_attempt.reference, AttemptStatus.PENDING, AttemptStatus.COMPLETED
        )
        second = PaymentAttempt.objects.transition(
            pending_attempt.reference, AttemptStatus.PENDING, AttemptStatus.COMPLETED
        )

        assert (first, second) == (1, 0)

    def test_pending_to_failed_sets_reason(self, pending_attempt):
        PaymentAttempt.objects.transition(
            pending_attempt.reference,
            AttemptStatus.PENDING,
            AttemptStatus.FAILED,
            failure_reason="EXPIRED",
        )

        pending_attempt.refresh_from_db()
        assert pending_attempt.status == AttemptStatus.FAILED
        assert pending_attempt.failure_reason == "EXPIRED"
        assert pending_attempt.failed_at is not None
        assert pending_attempt.completed_at is None

    def test_completed_cannot_fail(self, pending_attempt):
        PaymentAttempt.objects.transition(
            pending_attempt.reference, AttemptStatus.PENDING, AttemptStatus.COMPLETED
        )

        updated = PaymentAttempt.objects.transition(
            pending_attempt.reference, AttemptStatus.PENDING, AttemptStatus.FAILED
        )

        pending_attempt.refresh_from_db()
        assert updated == 0
        assert pending_attempt.status == AttemptStatus.COMPLETED

    def test_unknown_reference_updates_nothing(self, db):
        assert (
            PaymentAttempt.objects.transition(
                "TOKENS_auto_NOBODY_1", AttemptStatus.PENDING, AttemptStatus.COMPLETED
            )
            == 0
        )


class TestPaymentAttemptQueries:
    def test_latest_for_reference(self, pending_attempt):
        assert PaymentAttempt.objects.latest_for_reference(pending_attempt.reference) == (
            pending_attempt
        )
        assert PaymentAttempt.objects.latest_for_reference("missing") is None

    def test_stale_pending(self, db):
        with freeze_time("2026-01-01 10:00:00"):
            old_orange = PaymentAttemptFactory(method=PaymentMethod.ORANGE_MONEY)
            old_sama = PaymentAttemptFactory(method=PaymentMethod.SAMA_MONEY)
            PaymentAttemptFactory(status=AttemptStatus.COMPLETED)
        with freeze_time("2026-01-01 10:20:00"):
            PaymentAttemptFactory()

        cutoff = datetime(2026, 1, 1, 10, 15, tzinfo=dt_timezone.utc)

        stale = list(PaymentAttempt.objects.stale_pending(cutoff))
        assert set(stale) == {old_orange, old_sama}

        sama_only = PaymentAttempt.objects.stale_pending(
            cutoff, methods=[PaymentMethod.SAMA_MONEY]
        )
        assert list(sama_only) == [old_sama]


# =============================================================================
# Subscription Tests
# =============================================================================


class TestSubscriptionModel:
    """Tests for Subscription model."""

    def test_unique_per_user_and_service(self, db):
        SubscriptionFactory(user_id="U1", service_type=ServiceType.AUTO)
        SubscriptionFactory(user_id="U1", service_type=ServiceType.MOTORS)

        with pytest.raises(IntegrityError):
            SubscriptionFactory(user_id="U1", service_type=ServiceType.AUTO)

    def test_balance_cannot_go_negative(self, auto_subscription):
        """Balance is protected at the database level."""
        with pytest.raises(IntegrityError):
            Subscription.objects.filter(pk=auto_subscription.pk).update(
                token_balance=F("token_balance") - 1
            )

    def test_for_user(self, auto_subscription):
        assert Subscription.objects.for_user("U1", ServiceType.AUTO) == auto_subscription
        assert Subscription.objects.for_user("U1", ServiceType.MOTORS) is None

    def test_open_subscription_creates(self, db):
        subscription, created = Subscription.objects.open_subscription("U2", ServiceType.TELEPHONE)

        assert created is True
        assert subscription.token_balance == 0
        assert subscription.is_active is True

    def test_open_subscription_reactivates(self, db):
        inactive = SubscriptionFactory(user_id="U3", service_type=ServiceType.AUTO, is_active=False)

        subscription, created = Subscription.objects.open_subscription("U3", ServiceType.AUTO)

        assert created is False
        assert subscription.pk == inactive.pk
        assert subscription.is_active is True
        assert Subscription.objects.filter(user_id="U3").count() == 1

    def test_ledger_balance_sums_completed_rows(self, auto_subscription):
        TokenTransactionFactory(subscription=auto_subscription, token_amount=10)
        TokenTransactionFactory(subscription=auto_subscription, token_amount=20)
        TokenTransactionFactory(
            subscription=auto_subscription,
            transaction_type=TransactionType.RESCUE_CLAIM,
            token_amount=-5,
        )
        TokenTransactionFactory(
            subscription=auto_subscription,
            token_amount=40,
            status=TransactionStatus.FAILED,
        )

        assert auto_subscription.ledger_balance() == 25

    def test_ledger_balance_empty(self, auto_subscription):
        assert auto_subscription.ledger_balance() == 0


# =============================================================================
# TokenTransaction Tests
# =============================================================================


class TestTokenTransactionModel:
    def test_purchase_must_be_positive(self, auto_subscription):
        with pytest.raises(IntegrityError):
            TokenTransactionFactory(subscription=auto_subscription, token_amount=-10)

    def test_rescue_claim_must_be_negative(self, auto_subscription):
        with pytest.raises(IntegrityError):
            TokenTransactionFactory(
                subscription=auto_subscription,
                transaction_type=TransactionType.RESCUE_CLAIM,
                token_amount=5,
            )

    def test_str_shows_signed_amount(self, auto_subscription):
        tx = TokenTransactionFactory(
            subscription=auto_subscription, token_amount=10, transaction_reference="R1"
        )

        assert str(tx) == "TokenTransaction(purchase, +10, ref=R1)"


# =============================================================================
# WebhookEvent Tests
# =============================================================================


class TestWebhookEventModel:
    def test_defaults(self, db):
        event = WebhookEvent.objects.create(provider=PaymentMethod.CINETPAY, payload={"a": 1})

        assert event.status == WebhookEventStatus.RECEIVED
        assert event.reference == ""
        assert event.processed_at is None

    @freeze_time("2026-03-01 12:00:00")
    def test_mark_processed(self, db):
        event = WebhookEventFactory()

        event.mark_processed("credited 10 tokens")

        assert event.status == WebhookEventStatus.PROCESSED
        assert event.outcome == "credited 10 tokens"
        assert event.processed_at == timezone.now()

    def test_mark_helpers_do_not_save(self, db):
        event = WebhookEventFactory()

        event.mark_skipped("ALREADY_PROCESSED")
        event.refresh_from_db()

        assert event.status == WebhookEventStatus.RECEIVED

    def test_mark_failed(self, db):
        event = WebhookEventFactory()

        event.mark_failed("boom")
        event.save()
        event.refresh_from_db()

        assert event.status == WebhookEventStatus.FAILED
        assert event.outcome == "boom"
        assert event.processed_at is not None
        assert event.processed_at <= timezone.now() + timedelta(seconds=1)
