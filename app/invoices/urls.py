"""
URL configuration for the invoices app.

Invoices:
    POST /invoices/                          - Create invoice
    GET /invoices/<invoice_id>/              - Invoice detail (merchant)

Public:
    GET /status/<invoice_id>/<status_token>/ - Invoice status (token-authorized)

All routes are prefixed with /api/v1/ when included in the main URLconf.
"""

from django.urls import path

from invoices.views import InvoiceCreateView, InvoiceDetailView, InvoiceStatusView

app_name = "invoices"

urlpatterns = [
    path("invoices/", InvoiceCreateView.as_view(), name="invoice-create"),
    path("invoices/<uuid:invoice_id>/", InvoiceDetailView.as_view(), name="invoice-detail"),
    path(
        "status/<uuid:invoice_id>/<str:status_token>/",
        InvoiceStatusView.as_view(),
        name="invoice-status",
    ),
]
