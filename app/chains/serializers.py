"""
Serializers for provider health reporting.
"""

from __future__ import annotations

from rest_framework import serializers


class ProviderHealthSerializer(serializers.Serializer):
    """One backend's health on one chain."""

    chain = serializers.CharField()
    provider = serializers.CharField()
    status = serializers.CharField(source="status.value")
    last_check = serializers.DateTimeField()
    response_time_ms = serializers.IntegerField(allow_null=True)


class ProviderStatusSummarySerializer(serializers.Serializer):
    total_providers = serializers.IntegerField()
    healthy_providers = serializers.IntegerField()
    degraded_providers = serializers.IntegerField()
    offline_providers = serializers.IntegerField()
    average_response_time_ms = serializers.IntegerField(allow_null=True)


class ProviderStatusSerializer(serializers.Serializer):
    providers = ProviderHealthSerializer(many=True)
    summary = ProviderStatusSummarySerializer()
