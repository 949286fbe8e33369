"""
Serializers for invoice endpoints.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from chains.assets import Asset
from invoices.models import Invoice


class InvoiceCreateSerializer(serializers.Serializer):
    """Request body for invoice creation."""

    merchant_id = serializers.UUIDField()
    store_id = serializers.UUIDField()
    external_id = serializers.CharField(
        max_length=255,
        required=False,
        allow_null=True,
        allow_blank=True,
    )
    currency = serializers.ChoiceField(choices=["USD"], default="USD")
    fiat_amount = serializers.DecimalField(
        max_digits=18,
        decimal_places=2,
        min_value=Decimal("0.01"),
        help_text="Price in USD",
    )
    asset = serializers.ChoiceField(choices=Asset.choices)


class InvoiceCreatedSerializer(serializers.Serializer):
    """Response body for invoice creation."""

    invoice_id = serializers.UUIDField(source="id")
    address = serializers.CharField()
    amount_crypto = serializers.DecimalField(max_digits=36, decimal_places=8)
    asset = serializers.CharField()
    expires_at = serializers.DateTimeField()
    status_url = serializers.CharField(source="status_path")


class InvoiceSerializer(serializers.ModelSerializer):
    merchant_id = serializers.UUIDField(read_only=True)
    store_id = serializers.UUIDField(read_only=True)
    amount_crypto = serializers.DecimalField(max_digits=36, decimal_places=8, read_only=True)
    confirmations_remaining = serializers.IntegerField(read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "merchant_id",
            "store_id",
            "external_id",
            "fiat_currency",
            "fiat_amount",
            "asset",
            "amount_crypto",
            "rate",
            "address",
            "status",
            "expires_at",
            "confirmations_required",
            "confirmations_seen",
            "confirmations_remaining",
            "paid_at",
            "confirmed_at",
            "expired_at",
            "created_at",
        ]
        read_only_fields = fields


class InvoiceStatusSerializer(serializers.Serializer):
    """Public status of an invoice."""

    status = serializers.CharField()
    confirmations_seen = serializers.IntegerField()
    confirmations_required = serializers.IntegerField()
    confirmations_remaining = serializers.IntegerField()
    amount_crypto = serializers.DecimalField(max_digits=36, decimal_places=8)
    address = serializers.CharField()
    asset = serializers.CharField()
    expires_at = serializers.DateTimeField()
