"""
Django admin configuration for merchant models.
"""

from django.contrib import admin

from .models import Merchant, PlatformSettings, Store


class StoreInline(admin.TabularInline):
    model = Store
    extra = 0
    fields = ["name", "confirm_policy", "deposit_addresses"]


@admin.register(Merchant)
class MerchantAdmin(admin.ModelAdmin):
    """
    Admin configuration for Merchant.

    The webhook secret is editable but never listed.
    """

    list_display = ["id", "name", "status", "owner", "webhook_url", "custom_fee_pct", "created_at"]
    list_filter = ["status"]
    search_fields = ["id", "name", "owner__email"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["-created_at"]
    inlines = [StoreInline]

    fieldsets = (
        (None, {"fields": ("id", "name", "status", "owner")}),
        ("Webhooks", {"fields": ("webhook_url", "webhook_secret")}),
        ("Fees", {"fields": ("custom_fee_pct",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ["id", "name", "merchant", "created_at"]
    search_fields = ["id", "name", "merchant__name"]
    readonly_fields = ["id", "created_at", "updated_at"]
    list_select_related = ["merchant"]


@admin.register(PlatformSettings)
class PlatformSettingsAdmin(admin.ModelAdmin):
    list_display = ["key", "fee_pct", "updated_at"]
    readonly_fields = ["created_at", "updated_at"]
