"""
Django admin configuration for webhook deliveries.
"""

from django.contrib import admin

from .models import WebhookDelivery


@admin.register(WebhookDelivery)
class WebhookDeliveryAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookDelivery.

    Records are read-only: the delivery engine is their only writer.
    """

    list_display = [
        "id",
        "merchant",
        "event_type",
        "status",
        "attempts",
        "next_retry_at",
        "delivered_at",
        "failed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type"]
    search_fields = ["id", "url", "merchant__name"]
    readonly_fields = [field.name for field in WebhookDelivery._meta.fields]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False
