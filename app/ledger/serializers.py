"""
Serializers for ledger endpoints.
"""

from __future__ import annotations

from rest_framework import serializers

from chains.assets import Asset
from ledger.models import Balance, Withdrawal


class WithdrawalCreateSerializer(serializers.Serializer):
    merchant_id = serializers.UUIDField()
    asset = serializers.ChoiceField(choices=Asset.choices)
    amount = serializers.DecimalField(max_digits=36, decimal_places=18, min_value=0)
    address = serializers.CharField(max_length=128)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be positive.")
        return value


class WithdrawalSerializer(serializers.ModelSerializer):
    merchant_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Withdrawal
        fields = ["id", "merchant_id", "asset", "amount", "to_address", "status", "txid", "created_at"]
        read_only_fields = fields


class BalanceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Balance
        fields = ["owner", "asset", "available", "pending", "updated_at"]
        read_only_fields = fields
