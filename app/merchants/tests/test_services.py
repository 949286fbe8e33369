"""
Tests for merchant settings and platform statistics services.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from invoices.models import InvoiceStatus
from invoices.tests.factories import InvoiceFactory, PaymentFactory
from ledger.services import fee_ledger
from merchants.models import Merchant, MerchantStatus, PlatformSettings
from merchants.services import MerchantService, fee_stats, system_stats
from merchants.tests.factories import MerchantFactory, PlatformSettingsFactory, StoreFactory


@pytest.mark.django_db
class TestMerchantService:
    def test_update_webhook_keeps_secret_when_none_given(self):
        merchant = MerchantFactory(webhook_secret="old-secret")

        MerchantService.update_webhook(merchant, "https://shop.example/hooks")

        reloaded = Merchant.objects.get(pk=merchant.pk)
        assert reloaded.webhook_url == "https://shop.example/hooks"
        assert reloaded.webhook_secret == "old-secret"

    def test_update_webhook_rotates_secret(self):
        merchant = MerchantFactory(webhook_secret="old-secret")

        MerchantService.update_webhook(merchant, "https://shop.example/hooks", "new-secret")

        assert Merchant.objects.get(pk=merchant.pk).signing_secret() == "new-secret"

    def test_set_global_fee_creates_then_updates_row(self):
        MerchantService.set_global_fee(Decimal("1.50"))
        MerchantService.set_global_fee(Decimal("3.00"))

        assert PlatformSettings.objects.count() == 1
        assert PlatformSettings.global_fee_percent() == Decimal("3.00")

    def test_custom_fee_overrides_and_clears(self):
        PlatformSettingsFactory(fee_pct="2.00")
        merchant = MerchantFactory()

        MerchantService.set_custom_fee(merchant, Decimal("0.50"))
        assert Merchant.objects.get(pk=merchant.pk).fee_percent() == Decimal("0.50")

        MerchantService.set_custom_fee(merchant, None)
        assert Merchant.objects.get(pk=merchant.pk).fee_percent() == Decimal("2.00")

    def test_suspend(self):
        merchant = MerchantFactory()

        MerchantService.suspend(merchant)

        assert Merchant.objects.get(pk=merchant.pk).status == MerchantStatus.SUSPENDED

    def test_suspend_twice_is_noop(self, mocker):
        merchant = MerchantFactory(status=MerchantStatus.SUSPENDED)
        save = mocker.patch.object(Merchant, "save")

        MerchantService.suspend(merchant)

        save.assert_not_called()


@pytest.mark.django_db
class TestFeeStats:
    def test_empty(self, settings):
        settings.PLATFORM_FEE_PERCENT = 2.0

        stats = fee_stats()

        assert stats["fee_pct"] == Decimal("2.0")
        assert stats["assets"] == []

    def test_totals_per_asset(self):
        PlatformSettingsFactory(fee_pct="2.00")
        merchant = MerchantFactory()
        fee_ledger.credit(merchant.id, "usdt_erc20", Decimal("100"))
        fee_ledger.credit(merchant.id, "usdt_erc20", Decimal("100"))
        fee_ledger.credit(merchant.id, "btc", Decimal("1"))

        stats = fee_stats()

        assert [row["asset"] for row in stats["assets"]] == ["btc", "usdt_erc20"]
        btc, usdt = stats["assets"]
        assert btc["collected"] == Decimal("0.02")
        assert btc["payments"] == 1
        assert usdt["collected"] == Decimal("4")
        assert usdt["payments"] == 2
        assert usdt["available"] == Decimal("4")
        assert usdt["pending"] == Decimal("0")


@pytest.mark.django_db
class TestSystemStats:
    def test_counts(self):
        merchant = MerchantFactory()
        MerchantFactory(status=MerchantStatus.SUSPENDED)
        store = StoreFactory(merchant=merchant)
        InvoiceFactory(merchant=merchant, store=store)
        paid = InvoiceFactory(merchant=merchant, store=store, status=InvoiceStatus.PAID)
        PaymentFactory(invoice=paid)

        stats = system_stats()

        assert stats["total_merchants"] == 2
        assert stats["active_merchants"] == 1
        assert stats["total_invoices"] == 2
        assert stats["invoices_by_status"][InvoiceStatus.PENDING] == 1
        assert stats["invoices_by_status"][InvoiceStatus.PAID] == 1
        assert stats["invoices_by_status"][InvoiceStatus.EXPIRED] == 0
        assert stats["total_payments"] == 1
