"""
URL configuration for the webhooks app.

Webhooks:
    POST /webhooks/test/          - Queue a test webhook
    GET /webhooks/<webhook_id>/   - Delivery status

All routes are prefixed with /api/v1/ when included in the main URLconf.
"""

from django.urls import path

from webhooks.views import WebhookTestView, WebhookDeliveryDetailView

app_name = "webhooks"

urlpatterns = [
    path("webhooks/test/", WebhookTestView.as_view(), name="test"),
    path("webhooks/<uuid:webhook_id>/", WebhookDeliveryDetailView.as_view(), name="delivery-detail"),
]
