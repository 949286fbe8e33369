"""
Django admin configuration for ledger models.

Balances and fee splits are written only by FeeLedger, so they are
read-only here.
"""

from django.contrib import admin

from .models import Balance, FeeSplit, SweepIntent, Withdrawal


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Balance)
class BalanceAdmin(ReadOnlyAdmin):
    list_display = ["owner", "asset", "available", "pending", "updated_at"]
    list_filter = ["asset"]
    search_fields = ["owner"]


@admin.register(FeeSplit)
class FeeSplitAdmin(ReadOnlyAdmin):
    list_display = ["idempotency_key", "merchant_id", "asset", "gross", "fee_pct", "fee_amount", "created_at"]
    list_filter = ["asset"]
    search_fields = ["idempotency_key", "merchant_id"]


@admin.register(Withdrawal)
class WithdrawalAdmin(admin.ModelAdmin):
    list_display = ["id", "merchant", "asset", "amount", "to_address", "status", "created_at"]
    list_filter = ["asset", "status"]
    search_fields = ["id", "to_address", "merchant__name"]
    readonly_fields = ["id", "merchant", "asset", "amount", "to_address", "created_at", "updated_at"]


@admin.register(SweepIntent)
class SweepIntentAdmin(admin.ModelAdmin):
    list_display = ["id", "store", "asset", "amount", "from_address", "to_address", "status", "created_at"]
    list_filter = ["asset", "status"]
    search_fields = ["id", "from_address", "store__name"]
    readonly_fields = ["id", "store", "asset", "amount", "from_address", "to_address", "created_at", "updated_at"]
