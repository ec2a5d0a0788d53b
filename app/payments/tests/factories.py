"""
Factory Boy factories for payment test data.

Usage:
    from payments.tests.factories import (
        PaymentAttemptFactory,
        SubscriptionFactory,
        TokenTransactionFactory,
        WebhookEventFactory,
    )

    subscription = SubscriptionFactory(user_id="U1", service_type="auto")
    attempt = PaymentAttemptFactory(user_id="U1", service_type="auto", amount=7500)
"""

import factory

from payments.models import PaymentAttempt, Subscription, TokenTransaction, WebhookEvent
from payments.pricing import TOKEN_VALUES
from payments.references import build_reference
from payments.state_machines import (
    AttemptStatus,
    PaymentMethod,
    ServiceType,
    TransactionStatus,
    TransactionType,
    WebhookEventStatus,
)


class SubscriptionFactory(factory.django.DjangoModelFactory):
    """Factory for Subscription instances with an empty balance."""

    class Meta:
        model = Subscription

    user_id = factory.Sequence(lambda n: f"USER{n}")
    service_type = ServiceType.AUTO
    token_balance = 0
    is_active = True


class PaymentAttemptFactory(factory.django.DjangoModelFactory):
    """
    Factory for pending PaymentAttempt instances.

    The reference follows the production format so it can also be parsed.
    """

    class Meta:
        model = PaymentAttempt

    user_id = factory.Sequence(lambda n: f"USER{n}")
    service_type = ServiceType.AUTO
    tokens_requested = 10
    amount = factory.LazyAttribute(
        lambda o: TOKEN_VALUES[o.service_type] * o.tokens_requested
    )
    method = PaymentMethod.ORANGE_MONEY
    status = AttemptStatus.PENDING
    reference = factory.LazyAttributeSequence(
        lambda o, n: build_reference(o.service_type, o.user_id, now_ms=1_700_000_000_000 + n)
    )
    gateway_payload = factory.LazyFunction(dict)


class TokenTransactionFactory(factory.django.DjangoModelFactory):
    """
    Factory for purchase TokenTransaction rows.

    Note: does not touch the subscription balance; use the credit engine
    when the balance must match.
    """

    class Meta:
        model = TokenTransaction

    subscription = factory.SubFactory(SubscriptionFactory)
    transaction_type = TransactionType.PURCHASE
    token_amount = 10
    token_value = 750
    payment_method = PaymentMethod.ORANGE_MONEY
    transaction_reference = factory.Sequence(lambda n: f"REF{n}")
    status = TransactionStatus.COMPLETED


class WebhookEventFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = WebhookEvent

    provider = PaymentMethod.ORANGE_MONEY
    reference = factory.Sequence(lambda n: f"REF{n}")
    payload = factory.LazyAttribute(lambda o: {"order_id": o.reference, "status": "SUCCESS"})
    status = WebhookEventStatus.RECEIVED
