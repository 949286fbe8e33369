"""
URL configuration for the ledger app.

Ledger - Withdrawals:
    POST /withdrawals/                           - Record withdrawal intent

Ledger - Balances:
    GET /merchants/{merchant_id}/balances/       - List merchant balances

All routes are prefixed with /api/v1/ when included in the main URLconf.
"""

from django.urls import path

from ledger.views import MerchantBalancesView, WithdrawalCreateView

app_name = "ledger"

urlpatterns = [
    path("withdrawals/", WithdrawalCreateView.as_view(), name="withdrawal-create"),
    path(
        "merchants/<uuid:merchant_id>/balances/",
        MerchantBalancesView.as_view(),
        name="merchant-balances",
    ),
]
