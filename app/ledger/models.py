"""
Ledger models.

Balances are denormalized running totals per (owner, asset). Every credit
also writes a FeeSplit audit row keyed by an idempotency key, so a
payment can be credited at most once.

Owner is a merchant id string, or PLATFORM_OWNER for the platform's fee
balance.

Usage:
    from ledger.models import Balance, PLATFORM_OWNER

    platform_btc = Balance.objects.get(owner=PLATFORM_OWNER, asset="btc")
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models

from chains.assets import Asset
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

PLATFORM_OWNER = "admin"

AMOUNT_FIELD_OPTIONS = {"max_digits": 36, "decimal_places": 18}


class Balance(UUIDPrimaryKeyMixin, BaseModel):
    """
    Running balance of one asset for one owner.

    Fields:
        owner: Merchant id or "admin"
        asset: Asset code
        available: Spendable amount
        pending: Amount reserved by withdrawal requests

    Constraints:
        - Unique (owner, asset)
        - available and pending never negative
    """

    owner = models.CharField(max_length=64, db_index=True)
    asset = models.CharField(max_length=20, choices=Asset.choices)
    available = models.DecimalField(default=Decimal("0"), **AMOUNT_FIELD_OPTIONS)
    pending = models.DecimalField(default=Decimal("0"), **AMOUNT_FIELD_OPTIONS)

    class Meta:
        ordering = ["owner", "asset"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "asset"],
                name="ledger_unique_balance_per_owner_asset",
            ),
            models.CheckConstraint(
                condition=models.Q(available__gte=0),
                name="ledger_balance_available_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(pending__gte=0),
                name="ledger_balance_pending_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.owner} {self.asset}: {self.available} (+{self.pending} pending)"


class FeeSplit(UUIDPrimaryKeyMixin, BaseModel):
    """
    Audit record of one credit and how it was split.

    Fields:
        merchant_id: Credited merchant
        asset: Asset code
        gross: Amount received
        fee_pct: Fee percentage applied
        fee_amount: Platform share
        merchant_amount: Merchant share (gross - fee)
        idempotency_key: Unique key (e.g. "payment:<payment id>")
    """

    merchant_id = models.CharField(max_length=64, db_index=True)
    asset = models.CharField(max_length=20, choices=Asset.choices)
    gross = models.DecimalField(**AMOUNT_FIELD_OPTIONS)
    fee_pct = models.DecimalField(max_digits=5, decimal_places=2)
    fee_amount = models.DecimalField(**AMOUNT_FIELD_OPTIONS)
    merchant_amount = models.DecimalField(**AMOUNT_FIELD_OPTIONS)
    idempotency_key = models.CharField(max_length=255, unique=True)

    def __str__(self) -> str:
        return f"{self.idempotency_key}: {self.gross} {self.asset}"


class PayoutStatus(models.TextChoices):
    """Status of recorded payout intents. Nothing advances past PENDING."""

    PENDING = "pending", "Pending"


class Withdrawal(UUIDPrimaryKeyMixin, BaseModel):
    """
    Recorded merchant withdrawal intent.

    Creating one moves the amount from available to pending on the
    merchant's balance. No transaction is ever broadcast, so txid stays
    empty.
    """

    merchant = models.ForeignKey(
        "merchants.Merchant",
        on_delete=models.PROTECT,
        related_name="withdrawals",
    )
    asset = models.CharField(max_length=20, choices=Asset.choices)
    amount = models.DecimalField(**AMOUNT_FIELD_OPTIONS)
    to_address = models.CharField(max_length=128)
    status = models.CharField(
        max_length=20,
        choices=PayoutStatus.choices,
        default=PayoutStatus.PENDING,
        db_index=True,
    )
    txid = models.CharField(max_length=128, null=True, blank=True)

    def __str__(self) -> str:
        return f"Withdrawal {self.amount} {self.asset} -> {self.to_address}"


class SweepIntent(UUIDPrimaryKeyMixin, BaseModel):
    """Recorded intent to move a hot deposit address balance to cold storage."""

    store = models.ForeignKey(
        "merchants.Store",
        on_delete=models.PROTECT,
        related_name="sweep_intents",
    )
    asset = models.CharField(max_length=20, choices=Asset.choices)
    from_address = models.CharField(max_length=128)
    to_address = models.CharField(max_length=128)
    amount = models.DecimalField(**AMOUNT_FIELD_OPTIONS)
    status = models.CharField(
        max_length=20,
        choices=PayoutStatus.choices,
        default=PayoutStatus.PENDING,
        db_index=True,
    )

    def __str__(self) -> str:
        return f"Sweep {self.amount} {self.asset} {self.from_address} -> {self.to_address}"
