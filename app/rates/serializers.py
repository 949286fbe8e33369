"""
Serializers for rate endpoints.
"""

from __future__ import annotations

from rest_framework import serializers

from chains.assets import Asset


class RateQuerySerializer(serializers.Serializer):
    asset = serializers.ChoiceField(choices=Asset.choices)


class RateSerializer(serializers.Serializer):
    asset = serializers.CharField()
    rate = serializers.DecimalField(max_digits=36, decimal_places=8)
    currency = serializers.CharField(default="USD")
    timestamp = serializers.DateTimeField()


class CacheEntrySerializer(serializers.Serializer):
    asset = serializers.CharField()
    rate = serializers.CharField()
    age = serializers.FloatField()
    expired = serializers.BooleanField()
    synthetic = serializers.BooleanField()


class CacheStatsSerializer(serializers.Serializer):
    size = serializers.IntegerField()
    ttl = serializers.IntegerField()
    entries = CacheEntrySerializer(many=True)
