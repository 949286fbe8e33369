"""
Serializers for merchant settings and platform administration endpoints.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from merchants.models import Merchant

FEE_FIELD_OPTIONS = {
    "max_digits": 5,
    "decimal_places": 2,
    "min_value": Decimal("0"),
    "max_value": Decimal("100"),
}


class WebhookSettingsSerializer(serializers.Serializer):
    webhook_url = serializers.URLField(max_length=500)
    webhook_secret = serializers.CharField(
        max_length=255, required=False, allow_blank=True, write_only=True
    )


class GlobalFeeSerializer(serializers.Serializer):
    fee_pct = serializers.DecimalField(**FEE_FIELD_OPTIONS)


class MerchantFeeSerializer(serializers.Serializer):
    custom_fee_pct = serializers.DecimalField(allow_null=True, **FEE_FIELD_OPTIONS)


class MerchantSerializer(serializers.ModelSerializer):
    """Merchant as shown to staff. The webhook secret is never exposed."""

    owner_id = serializers.IntegerField(read_only=True)
    fee_pct = serializers.DecimalField(
        source="fee_percent", max_digits=5, decimal_places=2, read_only=True
    )

    class Meta:
        model = Merchant
        fields = [
            "id",
            "name",
            "status",
            "owner_id",
            "webhook_url",
            "custom_fee_pct",
            "fee_pct",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class FeeStatsAssetSerializer(serializers.Serializer):
    asset = serializers.CharField()
    collected = serializers.DecimalField(max_digits=36, decimal_places=18)
    payments = serializers.IntegerField()
    available = serializers.DecimalField(max_digits=36, decimal_places=18)
    pending = serializers.DecimalField(max_digits=36, decimal_places=18)


class FeeStatsSerializer(serializers.Serializer):
    fee_pct = serializers.DecimalField(max_digits=5, decimal_places=2)
    assets = FeeStatsAssetSerializer(many=True)


class SystemStatsSerializer(serializers.Serializer):
    total_merchants = serializers.IntegerField()
    active_merchants = serializers.IntegerField()
    total_invoices = serializers.IntegerField()
    invoices_by_status = serializers.DictField(child=serializers.IntegerField())
    total_payments = serializers.IntegerField()
