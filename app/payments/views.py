"""
DRF views for payments app.

This module provides API views for:
- Starting a token purchase with a provider
- Checking the status of a purchase
- Reading subscription balances and token history

Related files:
    - services/: PaymentOrchestrator, VerificationService
    - serializers.py: Request/response serializers
    - webhooks/views.py: Provider webhook endpoint
    - urls.py: URL routing

Endpoints:
    POST /api/v1/payments/initiate/<provider>/ - Start a purchase
    POST /api/v1/payments/verify/ - Check a purchase status
    GET /api/v1/payments/subscriptions/?userId= - List subscriptions
    GET /api/v1/payments/transactions/?userId=|subscriptionId= - List token movements

Security:
    - Endpoints are open; callers are the first-party web and mobile clients,
      authenticated upstream
    - Provider credentials never appear in responses
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import generics, status
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.models import Subscription, TokenTransaction
from payments.serializers import (
    InitiatePaymentResponseSerializer,
    InitiatePaymentSerializer,
    SubscriptionSerializer,
    TokenTransactionSerializer,
    VerifyPaymentResponseSerializer,
    VerifyPaymentSerializer,
)
from payments.services import PaymentOrchestrator, VerificationService

logger = logging.getLogger(__name__)

# Gateway failures are not the caller's fault; everything else maps to 400
ERROR_STATUS = {
    "CONFIGURATION_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "GATEWAY_AUTH_ERROR": status.HTTP_502_BAD_GATEWAY,
    "GATEWAY_REQUEST_ERROR": status.HTTP_502_BAD_GATEWAY,
    "GATEWAY_NETWORK_ERROR": status.HTTP_504_GATEWAY_TIMEOUT,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
}


def error_status(error_code: str | None) -> int:
    return ERROR_STATUS.get(error_code or "", status.HTTP_400_BAD_REQUEST)


class InitiatePaymentView(APIView):
    """
    Start a token purchase.

    POST /api/v1/payments/initiate/<provider>/

    Returns:
        200 with paymentUrl (hosted checkouts) or initiated=true (USSD push),
        400 on validation failure or provider refusal (message localized),
        500 when the provider is not configured, 502/504 on gateway failure
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="initiate_payment",
        summary="Initiate token purchase",
        description=(
            "Start a payment with Orange Money, SAMA Money or CinetPay. "
            "Tokens are credited when the provider confirms, never here."
        ),
        request=InitiatePaymentSerializer,
        responses={
            200: InitiatePaymentResponseSerializer,
            400: OpenApiResponse(description="Invalid request or payment refused"),
            500: OpenApiResponse(description="Provider not configured"),
            502: OpenApiResponse(description="Provider error"),
            504: OpenApiResponse(description="Provider unreachable"),
        },
        tags=["Payments"],
    )
    def post(self, request, provider: str):
        serializer = InitiatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PaymentOrchestrator.initiate(serializer.to_params(provider))

        if not result.success:
            body = result.to_response()
            if result.data is not None:
                body["reference"] = result.data.reference
                body["providerCode"] = result.data.error_code
            return Response(body, status=error_status(result.error_code))

        initiation = result.data
        return Response(
            {
                "success": True,
                "initiated": True,
                "reference": initiation.reference,
                "paymentUrl": initiation.payment_url,
                "message": initiation.message,
                "data": {
                    "provider": initiation.provider,
                    "payToken": initiation.pay_token,
                },
            }
        )


class VerifyPaymentView(APIView):
    """
    Check the status of a purchase.

    POST /api/v1/payments/verify/

    Request body:
        {"reference": "TOKENS_auto_U1_1700000000000", "gateway": "sama_money"}
    """

    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="verify_payment",
        summary="Verify payment status",
        description=(
            "Query the provider (SAMA Money, Orange Money) or the local ledger "
            "for a payment status. A confirmed payment is credited if it was "
            "not already."
        ),
        request=VerifyPaymentSerializer,
        responses={
            200: VerifyPaymentResponseSerializer,
            404: OpenApiResponse(description="Unknown reference"),
            502: OpenApiResponse(description="Provider error"),
            504: OpenApiResponse(description="Provider unreachable"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = VerificationService.verify(
            serializer.validated_data["reference"],
            serializer.validated_data.get("gateway") or None,
        )
        if not result.success:
            return Response(result.to_response(), status=error_status(result.error_code))

        outcome = result.data
        return Response(
            {
                "success": True,
                "status": outcome.status,
                "reference": outcome.reference,
                "credited": bool(outcome.credit and outcome.credit.credited),
            }
        )


@extend_schema(
    operation_id="list_subscriptions",
    summary="List subscriptions",
    description="Token balances of a user, one per service type.",
    parameters=[
        OpenApiParameter(
            name="userId",
            type=str,
            location=OpenApiParameter.QUERY,
            description="Owner user id",
            required=True,
        ),
    ],
    tags=["Payments"],
)
class SubscriptionListView(generics.ListAPIView):
    """GET /api/v1/payments/subscriptions/?userId="""

    permission_classes = [AllowAny]
    serializer_class = SubscriptionSerializer

    def get_queryset(self):
        user_id = self.request.query_params.get("userId")
        if not user_id:
            raise DRFValidationError({"userId": ["This query parameter is required."]})
        return Subscription.objects.filter(user_id=user_id).order_by("service_type")


@extend_schema(
    operation_id="list_token_transactions",
    summary="List token transactions",
    description="Token movements, newest first, filtered by user or subscription.",
    parameters=[
        OpenApiParameter(
            name="userId",
            type=str,
            location=OpenApiParameter.QUERY,
            description="Owner user id",
            required=False,
        ),
        OpenApiParameter(
            name="subscriptionId",
            type=int,
            location=OpenApiParameter.QUERY,
            description="Subscription id",
            required=False,
        ),
    ],
    tags=["Payments"],
)
class TokenTransactionListView(generics.ListAPIView):
    """GET /api/v1/payments/transactions/?userId=|subscriptionId="""

    permission_classes = [AllowAny]
    serializer_class = TokenTransactionSerializer

    def get_queryset(self):
        user_id = self.request.query_params.get("userId")
        subscription_id = self.request.query_params.get("subscriptionId")
        if not user_id and not subscription_id:
            raise DRFValidationError(
                {"detail": ["Either userId or subscriptionId is required."]}
            )

        queryset = TokenTransaction.objects.select_related("subscription")
        if user_id:
            queryset = queryset.filter(subscription__user_id=user_id)
        if subscription_id:
            if not subscription_id.isdigit():
                raise DRFValidationError({"subscriptionId": ["Must be an integer."]})
            queryset = queryset.filter(subscription_id=int(subscription_id))
        return queryset.order_by("-created_at")
