"""
URL configuration for the payment gateway.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/health/                - Same health check under the API prefix
    /api/v1/auth/                  - JWT endpoints
        token/                     - Obtain access/refresh pair
        token/refresh/             - Refresh access token
    /api/v1/invoices/              - Create invoice (POST)
        {id}/                      - Invoice detail
    /api/v1/status/{id}/{token}/   - Public invoice status
    /api/v1/rates/                 - Rate for one asset (?asset=)
        all/                       - Rates for every asset
        cache-stats/               - Rate cache introspection (staff)
        clear-cache/               - Empty the rate cache (staff)
    /api/v1/providers/status/      - Chain provider health
    /api/v1/webhooks/test/         - Enqueue a test webhook
        {id}/                      - Delivery record
    /api/v1/withdrawals/           - Record a withdrawal intent
    /api/v1/merchants/{id}/balances/ - Merchant balances
    /api/v1/merchants/{id}/webhook/  - Merchant webhook settings
    /api/v1/admin/                 - Staff administration
        merchants/                 - List merchants
        fees/                      - Global platform fee (GET, PUT)
        merchants/{id}/fee/        - Merchant fee override
        merchants/{id}/suspend/    - Suspend merchant
        fee-stats/                 - Fee totals per asset
        system-stats/              - System counts

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Authentication (simplejwt)
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # Health
    path("health/", health_check, name="api_health_check"),
    # Invoices and public status
    path("", include("invoices.urls")),
    # Rates
    path("", include("rates.urls")),
    # Chain providers
    path("", include("chains.urls")),
    # Webhooks
    path("", include("webhooks.urls")),
    # Ledger
    path("", include("ledger.urls")),
    # Merchant settings and platform administration
    path("", include("merchants.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Payment Gateway Admin"
admin.site.site_title = "Gateway Admin Portal"
admin.site.index_title = "Invoices, balances and webhooks"
