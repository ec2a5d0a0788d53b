"""
URL configuration for the payments app.

Routes:
    - POST initiate/<provider>/ - Start a token purchase
    - POST verify/ - Check a purchase status
    - POST webhook/<provider>/ - Provider confirmation callbacks
    - GET subscriptions/ - Token balances
    - GET transactions/ - Token history

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments.views import (
    InitiatePaymentView,
    SubscriptionListView,
    TokenTransactionListView,
    VerifyPaymentView,
)
from payments.webhooks.views import provider_webhook

app_name = "payments"

urlpatterns = [
    path("initiate/<str:provider>/", InitiatePaymentView.as_view(), name="initiate"),
    path("verify/", VerifyPaymentView.as_view(), name="verify"),
    # Webhook endpoints
    path("webhook/<str:provider>/", provider_webhook, name="webhook"),
    path("subscriptions/", SubscriptionListView.as_view(), name="subscriptions"),
    path("transactions/", TokenTransactionListView.as_view(), name="transactions"),
]
