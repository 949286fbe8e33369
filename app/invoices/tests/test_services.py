"""
Tests for InvoiceService.

These tests verify:
- Amount conversion with the rate buffer
- Creation validation and the fixed confirmation threshold
- Token-authorized status reads
- Lazy expiry on read, applied exactly once
"""

from __future__ import annotations

import re
import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from freezegun import freeze_time

from chains.exceptions import UnsupportedAsset
from core.exceptions import PermissionDeniedError
from invoices.exceptions import (
    AddressUnavailable,
    InvalidAmount,
    InvalidToken,
    InvoiceNotFound,
    MerchantInactive,
    MerchantNotFound,
    StoreNotFound,
    UnsupportedCurrency,
)
from invoices.models import Invoice, InvoiceStatus
from invoices.services import (
    InvoiceService,
    crypto_amount_for,
    create_invoice,
    read_invoice_status,
)
from invoices.tests.factories import InvoiceFactory
from merchants.models import MerchantStatus
from merchants.tests.factories import MerchantFactory, StoreFactory


@pytest.fixture
def usd_rate(mocker):
    """Pin the live rate source to 1.0 USD."""
    return mocker.patch("rates.cache.fetch_usd_price", return_value=Decimal("1.0"))


@pytest.fixture
def store(db):
    return StoreFactory()


class TestCryptoAmountFor:
    def test_buffer_raises_amount(self):
        assert crypto_amount_for(Decimal("100"), Decimal("1.0"), 0.5) == Decimal("100.5")

    def test_rounds_up_to_eight_places(self):
        amount = crypto_amount_for(Decimal("10"), Decimal("3"), 0)
        assert amount == Decimal("3.33333334")


@pytest.mark.django_db
class TestCreateInvoice:
    def test_creates_pending_invoice(self, store, usd_rate):
        invoice = create_invoice(
            merchant_id=store.merchant_id,
            store_id=store.id,
            asset="usdt_erc20",
            fiat_amount=Decimal("100.00"),
            external_id="order-42",
        )

        assert invoice.status == InvoiceStatus.PENDING
        assert invoice.amount_crypto == Decimal("100.5")
        assert invoice.rate == Decimal("1.0")
        assert invoice.address == store.deposit_addresses["usdt_erc20"]
        assert invoice.external_id == "order-42"
        assert invoice.confirmations_required == 12
        assert invoice.confirmations_seen == 0
        assert re.fullmatch(r"[0-9a-f]{64}", invoice.status_token)

    def test_expires_after_window(self, store, usd_rate, settings):
        settings.INVOICE_EXPIRY_MINUTES = 15
        with freeze_time("2026-03-01 12:00:00"):
            invoice = create_invoice(store.merchant_id, store.id, "usdt_erc20", "100")

            assert invoice.expires_at == timezone.now() + timedelta(minutes=15)

    def test_store_policy_overrides_threshold(self, usd_rate):
        store = StoreFactory(confirm_policy={"btc": {"confirmedAt": 6}})

        invoice = create_invoice(store.merchant_id, store.id, "btc", Decimal("50"))

        assert invoice.confirmations_required == 6

    def test_tokens_are_unique(self, store, usd_rate):
        first = create_invoice(store.merchant_id, store.id, "eth", "10")
        second = create_invoice(store.merchant_id, store.id, "eth", "10")

        assert first.status_token != second.status_token

    def test_reuses_cached_rate(self, store, usd_rate):
        create_invoice(store.merchant_id, store.id, "usdt_erc20", "10")
        create_invoice(store.merchant_id, store.id, "usdt_erc20", "20")

        usd_rate.assert_called_once_with("usdt_erc20")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), "abc", "NaN"])
    def test_rejects_invalid_amount(self, store, usd_rate, amount):
        with pytest.raises(InvalidAmount):
            create_invoice(store.merchant_id, store.id, "btc", amount)

    def test_rejects_other_currency(self, store, usd_rate):
        with pytest.raises(UnsupportedCurrency):
            create_invoice(store.merchant_id, store.id, "btc", "10", currency="EUR")

    def test_rejects_unknown_asset(self, store, usd_rate):
        with pytest.raises(UnsupportedAsset):
            create_invoice(store.merchant_id, store.id, "doge", "10")

    def test_unknown_merchant(self, usd_rate):
        with pytest.raises(MerchantNotFound):
            create_invoice(uuid.uuid4(), uuid.uuid4(), "btc", "10")

    def test_suspended_merchant(self, usd_rate):
        store = StoreFactory(merchant=MerchantFactory(status=MerchantStatus.SUSPENDED))

        with pytest.raises(MerchantInactive):
            create_invoice(store.merchant_id, store.id, "btc", "10")

    def test_store_of_other_merchant(self, store, usd_rate):
        other = MerchantFactory()

        with pytest.raises(StoreNotFound):
            create_invoice(other.id, store.id, "btc", "10")

    def test_store_without_address_for_asset(self, store, usd_rate):
        with pytest.raises(AddressUnavailable):
            create_invoice(store.merchant_id, store.id, "usdt_trc20", "10")

        assert not Invoice.objects.exists()

    def test_custom_address_deriver(self, store, usd_rate, settings):
        settings.INVOICE_ADDRESS_DERIVER = "invoices.tests.test_services.derive_test_address"

        invoice = create_invoice(store.merchant_id, store.id, "usdt_trc20", "10")

        assert invoice.address == f"T{store.pk.hex[:20]}"


def derive_test_address(store, asset):
    return f"T{store.pk.hex[:20]}"


@pytest.mark.django_db
class TestReadInvoiceStatus:
    def test_returns_status_report(self):
        invoice = InvoiceFactory(confirmations_seen=3)

        report = read_invoice_status(invoice.pk, invoice.status_token)

        assert report.status == InvoiceStatus.PENDING
        assert report.confirmations_seen == 3
        assert report.confirmations_required == 12
        assert report.confirmations_remaining == 9
        assert report.amount_crypto == invoice.amount_crypto
        assert report.address == invoice.address
        assert report.asset == invoice.asset
        assert report.expires_at == invoice.expires_at

    def test_wrong_token(self):
        invoice = InvoiceFactory()

        with pytest.raises(InvalidToken) as exc_info:
            read_invoice_status(invoice.pk, "0" * 64)

        assert isinstance(exc_info.value, PermissionDeniedError)
        assert exc_info.value.error_code == "INVALID_TOKEN"
        assert "0" * 64 not in str(exc_info.value.to_dict())

    def test_empty_token(self):
        invoice = InvoiceFactory()

        with pytest.raises(InvalidToken):
            read_invoice_status(invoice.pk, "")

    def test_unknown_invoice(self):
        with pytest.raises(InvoiceNotFound):
            read_invoice_status(uuid.uuid4(), "0" * 64)

    def test_malformed_id(self):
        with pytest.raises(InvoiceNotFound):
            read_invoice_status("not-a-uuid", "0" * 64)

    def test_never_calls_a_provider(self, mocker):
        get_pool = mocker.patch("chains.pool.get_pool")
        invoice = InvoiceFactory()

        read_invoice_status(invoice.pk, invoice.status_token)

        get_pool.assert_not_called()

    def test_overdue_invoice_expires_once(self):
        with freeze_time("2026-03-01 12:00:00") as frozen:
            invoice = InvoiceFactory()
            frozen.tick(timedelta(minutes=16))

            first = read_invoice_status(invoice.pk, invoice.status_token)
            expired = Invoice.objects.get(pk=invoice.pk)
            frozen.tick(timedelta(minutes=1))
            second = read_invoice_status(invoice.pk, invoice.status_token)

        reloaded = Invoice.objects.get(pk=invoice.pk)
        assert first.status == InvoiceStatus.EXPIRED
        assert second.status == InvoiceStatus.EXPIRED
        assert reloaded.expired_at == expired.expired_at
        assert reloaded.updated_at == expired.updated_at

    def test_paid_invoice_is_not_expired(self):
        with freeze_time("2026-03-01 12:00:00") as frozen:
            invoice = InvoiceFactory(status=InvoiceStatus.PAID)
            frozen.tick(timedelta(minutes=30))

            report = read_invoice_status(invoice.pk, invoice.status_token)

        assert report.status == InvoiceStatus.PAID


@pytest.mark.django_db
class TestExpireIfOverdue:
    def test_only_first_caller_expires(self):
        invoice = InvoiceFactory(expires_at=timezone.now() - timedelta(seconds=1))

        _, first = InvoiceService.expire_if_overdue(invoice.pk)
        _, second = InvoiceService.expire_if_overdue(invoice.pk)

        assert first is True
        assert second is False

    def test_invoice_inside_window_is_untouched(self):
        invoice = InvoiceFactory()

        reloaded, expired = InvoiceService.expire_if_overdue(invoice.pk)

        assert expired is False
        assert reloaded.status == InvoiceStatus.PENDING
