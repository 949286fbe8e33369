"""
Merchant settings and platform administration services.

Merchants manage their own webhook target; staff manage the platform
fee, per-merchant fee overrides and suspensions. Stats helpers only
read.

Usage:
    from merchants.services import MerchantService

    MerchantService.update_webhook(merchant, "https://shop.example/hooks")
    MerchantService.set_global_fee(Decimal("1.5"))
    MerchantService.suspend(merchant)
"""

from __future__ import annotations

from decimal import Decimal

from django.db.models import Count, Sum

from core.services import BaseService
from invoices.models import Invoice, InvoiceStatus, Payment
from ledger.models import PLATFORM_OWNER, Balance, FeeSplit
from merchants.models import Merchant, MerchantStatus, PlatformSettings


class MerchantService(BaseService):
    """Write operations on merchants and platform settings."""

    @classmethod
    def update_webhook(
        cls,
        merchant: Merchant,
        webhook_url: str,
        webhook_secret: str | None = None,
    ) -> Merchant:
        """
        Point the merchant's webhooks at a new URL.

        The secret is replaced only when one is given; the stored secret is
        never logged.
        """
        merchant.webhook_url = webhook_url
        update_fields = ["webhook_url", "updated_at"]
        if webhook_secret:
            merchant.webhook_secret = webhook_secret
            update_fields.append("webhook_secret")
        merchant.save(update_fields=update_fields)

        cls.get_logger().info(
            f"Webhook URL updated for merchant {merchant.pk}",
            extra={"merchant_id": str(merchant.pk), "secret_rotated": bool(webhook_secret)},
        )
        return merchant

    @classmethod
    def set_global_fee(cls, fee_pct: Decimal) -> PlatformSettings:
        row, _ = PlatformSettings.objects.update_or_create(
            key=PlatformSettings.GLOBAL_KEY,
            defaults={"fee_pct": fee_pct},
        )
        cls.get_logger().info(f"Global platform fee set to {fee_pct}%")
        return row

    @classmethod
    def set_custom_fee(cls, merchant: Merchant, custom_fee_pct: Decimal | None) -> Merchant:
        """Set or clear (None) the merchant's fee override."""
        merchant.custom_fee_pct = custom_fee_pct
        merchant.save(update_fields=["custom_fee_pct", "updated_at"])

        cls.get_logger().info(
            f"Custom fee for merchant {merchant.pk} set to {custom_fee_pct}",
            extra={"merchant_id": str(merchant.pk)},
        )
        return merchant

    @classmethod
    def suspend(cls, merchant: Merchant) -> Merchant:
        """
        Suspend the merchant. Suspended merchants cannot create invoices
        or withdraw; invoices already issued keep being tracked.
        """
        if merchant.status == MerchantStatus.SUSPENDED:
            return merchant

        merchant.status = MerchantStatus.SUSPENDED
        merchant.save(update_fields=["status", "updated_at"])

        cls.get_logger().warning(
            f"Merchant {merchant.pk} suspended",
            extra={"merchant_id": str(merchant.pk)},
        )
        return merchant


def fee_stats() -> dict:
    """
    Platform fee totals per asset.

    collected is the sum of every fee split; available and pending are the
    platform balance as it stands now (collected less withdrawals).
    """
    assets: dict[str, dict] = {}
    splits = FeeSplit.objects.order_by().values("asset").annotate(
        collected=Sum("fee_amount"), payments=Count("id")
    )
    for row in splits:
        assets[row["asset"]] = {
            "asset": row["asset"],
            "collected": row["collected"] or Decimal("0"),
            "payments": row["payments"],
            "available": Decimal("0"),
            "pending": Decimal("0"),
        }

    for balance in Balance.objects.filter(owner=PLATFORM_OWNER):
        entry = assets.setdefault(
            balance.asset,
            {
                "asset": balance.asset,
                "collected": Decimal("0"),
                "payments": 0,
                "available": Decimal("0"),
                "pending": Decimal("0"),
            },
        )
        entry["available"] = balance.available
        entry["pending"] = balance.pending

    return {
        "fee_pct": PlatformSettings.global_fee_percent(),
        "assets": [assets[code] for code in sorted(assets)],
    }


def system_stats() -> dict:
    by_status = dict(
        Invoice.objects.order_by().values("status").annotate(total=Count("id")).values_list("status", "total")
    )
    return {
        "total_merchants": Merchant.objects.count(),
        "active_merchants": Merchant.objects.filter(status=MerchantStatus.ACTIVE).count(),
        "total_invoices": sum(by_status.values()),
        "invoices_by_status": {choice: by_status.get(choice, 0) for choice in InvoiceStatus.values},
        "total_payments": Payment.objects.count(),
    }
