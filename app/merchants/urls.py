"""
URL configuration for the merchants app.

Merchants:
    PUT /merchants/<merchant_id>/webhook/            - Webhook settings

Admin (staff only):
    GET /admin/merchants/                            - List merchants
    GET, PUT /admin/fees/                            - Global platform fee
    PUT /admin/merchants/<merchant_id>/fee/          - Merchant fee override
    PUT /admin/merchants/<merchant_id>/suspend/      - Suspend merchant
    GET /admin/fee-stats/                            - Fee totals per asset
    GET /admin/system-stats/                         - System counts

All routes are prefixed with /api/v1/ when included in the main URLconf.
"""

from django.urls import path

from merchants.views import (
    FeeStatsView,
    MerchantFeeView,
    MerchantListView,
    MerchantSuspendView,
    MerchantWebhookView,
    PlatformFeeView,
    SystemStatsView,
)

app_name = "merchants"

urlpatterns = [
    path("merchants/<uuid:merchant_id>/webhook/", MerchantWebhookView.as_view(), name="webhook-settings"),
    path("admin/merchants/", MerchantListView.as_view(), name="merchant-list"),
    path("admin/fees/", PlatformFeeView.as_view(), name="platform-fee"),
    path("admin/merchants/<uuid:merchant_id>/fee/", MerchantFeeView.as_view(), name="merchant-fee"),
    path(
        "admin/merchants/<uuid:merchant_id>/suspend/",
        MerchantSuspendView.as_view(),
        name="merchant-suspend",
    ),
    path("admin/fee-stats/", FeeStatsView.as_view(), name="fee-stats"),
    path("admin/system-stats/", SystemStatsView.as_view(), name="system-stats"),
]
