"""
Serializers for webhook endpoints.
"""

from __future__ import annotations

from rest_framework import serializers

from webhooks.models import WebhookDelivery


class WebhookTestRequestSerializer(serializers.Serializer):
    merchant_id = serializers.UUIDField()


class WebhookTestResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField(default=True)
    webhook_id = serializers.UUIDField()
    message = serializers.CharField()


class WebhookDeliverySerializer(serializers.ModelSerializer):
    merchant_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = WebhookDelivery
        fields = [
            "id",
            "merchant_id",
            "event_type",
            "url",
            "status",
            "attempts",
            "last_attempt_at",
            "next_retry_at",
            "last_error",
            "delivered_at",
            "failed_at",
            "created_at",
        ]
        read_only_fields = fields
