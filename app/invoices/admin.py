"""
Django admin configuration for invoice models.

Status is read-only here: it only moves through the FSM transitions.
"""

from django.contrib import admin

from .models import Invoice, Payment


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    can_delete = False
    fields = ["txid", "amount", "block_height", "confirmations", "created_at"]
    readonly_fields = fields


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "merchant",
        "asset",
        "amount_crypto",
        "status",
        "confirmations_seen",
        "confirmations_required",
        "expires_at",
        "created_at",
    ]
    list_filter = ["status", "asset"]
    search_fields = ["id", "external_id", "address"]
    readonly_fields = [
        "id",
        "status",
        "address",
        "amount_crypto",
        "rate",
        "status_token",
        "confirmations_required",
        "confirmations_seen",
        "paid_at",
        "confirmed_at",
        "expired_at",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]
    inlines = [PaymentInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ["id", "invoice", "asset", "txid", "amount", "confirmations", "created_at"]
    list_filter = ["asset"]
    search_fields = ["id", "txid", "invoice__id"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["-created_at"]
