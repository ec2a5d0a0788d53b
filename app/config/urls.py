"""
URL configuration for the token purchase service.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/payments/              - Payment endpoints
        initiate/<provider>/       - Start a token purchase (POST)
        verify/                    - Query payment status (POST)
        webhook/<provider>/        - Provider confirmation callbacks (POST)
        subscriptions/             - Token balances for a user (GET)
        transactions/              - Token transaction history (GET)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "Token Purchase Admin"
admin.site.site_title = "Token Purchase Admin"
admin.site.index_title = "Payments & Referrals"
