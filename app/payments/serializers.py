"""
DRF serializers for payments app.

This module provides serializers for:
- Payment initiation and verification requests
- Subscription balances
- Token transaction history

Request and response keys are camelCase, as the web and mobile clients
send and expect them.

Usage:
    serializer = InitiatePaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    params = serializer.to_params(provider)
"""

from __future__ import annotations

from rest_framework import serializers

from payments.adapters import CustomerProfile
from payments.models import Subscription, TokenTransaction
from payments.pricing import MAX_TOKENS_PER_PURCHASE, MIN_TOKENS_PER_PURCHASE
from payments.references import can_embed_user_id
from payments.services import InitiatePaymentParams
from payments.state_machines import AttemptStatus, ServiceType


# =============================================================================
# Request Serializers
# =============================================================================


class PurchaseMetadataSerializer(serializers.Serializer):
    serviceType = serializers.ChoiceField(choices=ServiceType.choices)
    tokens = serializers.IntegerField(
        required=False,
        min_value=MIN_TOKENS_PER_PURCHASE,
        max_value=MAX_TOKENS_PER_PURCHASE,
    )


class CustomerSerializer(serializers.Serializer):
    """Buyer profile forwarded to hosted checkouts. Every field is optional."""

    name = serializers.CharField(required=False, allow_blank=True, max_length=100)
    surname = serializers.CharField(required=False, allow_blank=True, max_length=100)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    address = serializers.CharField(required=False, allow_blank=True, max_length=255)
    city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    country = serializers.CharField(required=False, allow_blank=True, max_length=2)
    state = serializers.CharField(required=False, allow_blank=True, max_length=100)
    zipCode = serializers.CharField(required=False, allow_blank=True, max_length=20)


class InitiatePaymentSerializer(serializers.Serializer):
    """
    Body of POST /initiate/<provider>/.

    Example:
        {
            "userId": "U1",
            "amount": 7500,
            "phone": "76123456",
            "metadata": {"serviceType": "auto", "tokens": 10}
        }
    """

    reference = serializers.CharField(required=False, allow_blank=True, max_length=128)
    amount = serializers.IntegerField(min_value=1)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    userId = serializers.CharField(max_length=64)
    description = serializers.CharField(required=False, allow_blank=True, max_length=255)
    metadata = PurchaseMetadataSerializer()
    customer = CustomerSerializer(required=False)

    def validate(self, attrs):
        # Generated references embed the user id and are split on underscores
        if not attrs.get("reference") and not can_embed_user_id(attrs["userId"]):
            raise serializers.ValidationError(
                {"userId": ["May not contain underscores unless a reference is supplied."]}
            )
        return attrs

    def to_params(self, provider: str) -> InitiatePaymentParams:
        data = self.validated_data
        customer = dict(data.get("customer") or {})
        if "zipCode" in customer:
            customer["zip_code"] = customer.pop("zipCode")
        return InitiatePaymentParams(
            provider=provider,
            user_id=data["userId"],
            service_type=data["metadata"]["serviceType"],
            amount=data["amount"],
            tokens=data["metadata"].get("tokens"),
            reference=data.get("reference") or None,
            phone=data.get("phone") or None,
            description=data.get("description") or None,
            customer=CustomerProfile(**customer),
            metadata=dict(data["metadata"]),
        )


class VerifyPaymentSerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=128)
    gateway = serializers.CharField(required=False, allow_blank=True, max_length=32)


# =============================================================================
# Response Serializers
# =============================================================================


class InitiatePaymentResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    initiated = serializers.BooleanField()
    reference = serializers.CharField()
    paymentUrl = serializers.URLField(required=False, allow_null=True)
    message = serializers.CharField()
    data = serializers.DictField()


class VerifyPaymentResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    status = serializers.ChoiceField(choices=AttemptStatus.choices)
    reference = serializers.CharField()
    credited = serializers.BooleanField()


class SubscriptionSerializer(serializers.ModelSerializer):
    """
    Subscription balance for API responses.

    Usage:
        SubscriptionSerializer(Subscription.objects.filter(user_id="U1"), many=True)
    """

    userId = serializers.CharField(source="user_id", read_only=True)
    serviceType = serializers.CharField(source="service_type", read_only=True)
    tokenBalance = serializers.IntegerField(source="token_balance", read_only=True)
    isActive = serializers.BooleanField(source="is_active", read_only=True)
    subscriptionDate = serializers.DateTimeField(source="subscription_date", read_only=True)
    lastRescueClaimDate = serializers.DateTimeField(
        source="last_rescue_claim_date", read_only=True
    )

    class Meta:
        model = Subscription
        fields = [
            "id",
            "userId",
            "serviceType",
            "tokenBalance",
            "isActive",
            "subscriptionDate",
            "lastRescueClaimDate",
        ]


class TokenTransactionSerializer(serializers.ModelSerializer):
    subscriptionId = serializers.IntegerField(source="subscription_id", read_only=True)
    transactionType = serializers.CharField(source="transaction_type", read_only=True)
    tokenAmount = serializers.IntegerField(source="token_amount", read_only=True)
    tokenValue = serializers.IntegerField(source="token_value", read_only=True)
    paymentMethod = serializers.CharField(source="payment_method", read_only=True)
    transactionReference = serializers.CharField(
        source="transaction_reference", read_only=True
    )
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = TokenTransaction
        fields = [
            "id",
            "subscriptionId",
            "transactionType",
            "tokenAmount",
            "tokenValue",
            "paymentMethod",
            "transactionReference",
            "status",
            "createdAt",
        ]
