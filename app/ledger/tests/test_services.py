"""
Tests for FeeLedger.

These tests verify:
- Fee split between merchant and platform balances
- Merchant fee override and global fee resolution
- Idempotent credits
- Conflict retry
- Withdrawal reservation and validation
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import OperationalError

from chains.exceptions import UnsupportedAsset
from core.exceptions import ConflictError, NotFoundError, ValidationError
from ledger.exceptions import BalanceNotFound, InsufficientBalance
from ledger.models import PLATFORM_OWNER, Balance, FeeSplit, Withdrawal
from ledger.services import FeeLedger, fee_ledger, split_fee
from ledger.tests.factories import BalanceFactory
from merchants.models import MerchantStatus
from merchants.tests.factories import MerchantFactory, PlatformSettingsFactory


def balance(owner, asset):
    return Balance.objects.get(owner=str(owner), asset=asset)


class TestSplitFee:
    """Test fee arithmetic."""

    def test_two_percent_of_hundred(self):
        assert split_fee(Decimal("100"), Decimal("2")) == (Decimal("2.00000000"), Decimal("98.00000000"))

    def test_parts_always_sum_to_gross(self):
        gross = Decimal("0.123456789")
        fee, merchant = split_fee(gross, Decimal("2.5"))

        assert fee + merchant == gross


@pytest.mark.django_db
class TestCredit:
    """Test FeeLedger.credit."""

    def test_global_fee_split(self, settings):
        """credit(m, asset, 100) at 2% gives merchant 98 and platform 2."""
        settings.PLATFORM_FEE_PERCENT = 2.0
        merchant = MerchantFactory()

        split = fee_ledger.credit(merchant.id, "usdt_erc20", Decimal("100"))

        assert split.fee_amount == Decimal("2")
        assert split.merchant_amount == Decimal("98")
        assert balance(merchant.id, "usdt_erc20").available == Decimal("98")
        assert balance(PLATFORM_OWNER, "usdt_erc20").available == Decimal("2")

    def test_platform_settings_row_used(self):
        PlatformSettingsFactory(fee_pct="5.00")
        merchant = MerchantFactory()

        fee_ledger.credit(merchant.id, "btc", Decimal("1"))

        assert balance(merchant.id, "btc").available == Decimal("0.95")
        assert balance(PLATFORM_OWNER, "btc").available == Decimal("0.05")

    def test_merchant_override_used(self):
        PlatformSettingsFactory(fee_pct="5.00")
        merchant = MerchantFactory(custom_fee_pct=Decimal("1.00"))

        split = fee_ledger.credit(merchant.id, "eth", Decimal("10"))

        assert split.fee_pct == Decimal("1.00")
        assert balance(merchant.id, "eth").available == Decimal("9.9")

    def test_credits_accumulate(self, settings):
        settings.PLATFORM_FEE_PERCENT = 2.0
        first = MerchantFactory()
        second = MerchantFactory()

        fee_ledger.credit(first.id, "btc", Decimal("1"))
        fee_ledger.credit(second.id, "btc", Decimal("2"))
        fee_ledger.credit(first.id, "btc", Decimal("1"))

        assert balance(first.id, "btc").available == Decimal("1.96")
        assert balance(second.id, "btc").available == Decimal("1.96")
        assert balance(PLATFORM_OWNER, "btc").available == Decimal("0.08")

    def test_repeated_idempotency_key_credits_once(self, settings):
        settings.PLATFORM_FEE_PERCENT = 2.0
        merchant = MerchantFactory()

        first = fee_ledger.credit(merchant.id, "btc", Decimal("1"), idempotency_key="payment:abc")
        second = fee_ledger.credit(merchant.id, "btc", Decimal("1"), idempotency_key="payment:abc")

        assert first.pk == second.pk
        assert FeeSplit.objects.count() == 1
        assert balance(merchant.id, "btc").available == Decimal("0.98")

    def test_non_positive_amount_rejected(self):
        merchant = MerchantFactory()

        with pytest.raises(ValidationError):
            fee_ledger.credit(merchant.id, "btc", Decimal("0"))

    def test_unknown_asset_rejected(self):
        merchant = MerchantFactory()

        with pytest.raises(UnsupportedAsset):
            fee_ledger.credit(merchant.id, "doge", Decimal("1"))

    def test_conflict_is_retried(self, settings):
        """A transient OperationalError is retried and the credit applied once."""
        settings.LEDGER_CONFLICT_RETRIES = 3
        merchant = MerchantFactory()
        original = FeeLedger._credit_once.__func__
        calls = []

        def flaky(cls, *args):
            calls.append(1)
            if len(calls) == 1:
                raise OperationalError("deadlock detected")
            return original(cls, *args)

        with patch.object(FeeLedger, "_credit_once", classmethod(flaky)):
            fee_ledger.credit(merchant.id, "btc", Decimal("1"), idempotency_key="k1")

        assert len(calls) == 2
        assert FeeSplit.objects.filter(idempotency_key="k1").count() == 1

    def test_conflict_gives_up_after_retries(self, settings):
        settings.LEDGER_CONFLICT_RETRIES = 2
        merchant = MerchantFactory()

        with patch.object(
            FeeLedger,
            "_credit_once",
            side_effect=OperationalError("could not serialize access"),
        ) as mock_credit:
            with pytest.raises(OperationalError):
                fee_ledger.credit(merchant.id, "btc", Decimal("1"))

        assert mock_credit.call_count == 2


@pytest.mark.django_db
class TestRequestWithdrawal:
    """Test FeeLedger.request_withdrawal."""

    def test_moves_available_to_pending(self):
        merchant = MerchantFactory()
        BalanceFactory(owner=str(merchant.id), asset="btc", available=Decimal("1"))

        withdrawal = fee_ledger.request_withdrawal(merchant.id, "btc", Decimal("0.4"), "bc1qdest")

        row = balance(merchant.id, "btc")
        assert row.available == Decimal("0.6")
        assert row.pending == Decimal("0.4")
        assert withdrawal.status == "pending"
        assert withdrawal.txid is None

    def test_insufficient_balance(self):
        merchant = MerchantFactory()
        BalanceFactory(owner=str(merchant.id), asset="btc", available=Decimal("0.1"))

        with pytest.raises(InsufficientBalance) as exc_info:
            fee_ledger.request_withdrawal(merchant.id, "btc", Decimal("0.2"), "bc1qdest")

        assert exc_info.value.available == Decimal("0.1")
        assert balance(merchant.id, "btc").available == Decimal("0.1")
        assert Withdrawal.objects.count() == 0

    def test_missing_balance(self):
        merchant = MerchantFactory()

        with pytest.raises(BalanceNotFound):
            fee_ledger.request_withdrawal(merchant.id, "eth", Decimal("1"), "0xdest")

    def test_unknown_merchant(self):
        import uuid

        with pytest.raises(NotFoundError):
            fee_ledger.request_withdrawal(uuid.uuid4(), "eth", Decimal("1"), "0xdest")

    def test_suspended_merchant(self):
        merchant = MerchantFactory(status=MerchantStatus.SUSPENDED)
        BalanceFactory(owner=str(merchant.id), asset="btc", available=Decimal("1"))

        with pytest.raises(ConflictError):
            fee_ledger.request_withdrawal(merchant.id, "btc", Decimal("0.5"), "bc1qdest")


@pytest.mark.django_db
class TestBalanceLookup:
    def test_get_balance_missing_raises(self):
        with pytest.raises(BalanceNotFound):
            fee_ledger.get_balance("nobody", "btc")

    def test_balances_for_owner(self):
        BalanceFactory(owner="m1", asset="eth")
        BalanceFactory(owner="m1", asset="btc")
        BalanceFactory(owner="m2", asset="btc")

        assets = [b.asset for b in fee_ledger.balances_for("m1")]

        assert assets == ["btc", "eth"]
