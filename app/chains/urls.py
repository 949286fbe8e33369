"""
URL configuration for the chains app.

Chains - Providers:
    GET /providers/status/ - Backend health per chain

All routes are prefixed with /api/v1/ when included in the main URLconf.
"""

from django.urls import path

from chains.views import ProviderStatusView

app_name = "chains"

urlpatterns = [
    path("providers/status/", ProviderStatusView.as_view(), name="provider-status"),
]
