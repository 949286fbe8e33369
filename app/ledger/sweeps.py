"""
Hot-address sweep intent recording.

Every six hours each store's recently paid deposit addresses are
balance-checked through the provider pool. Balances at or above the
per-asset threshold get a SweepIntent for 95% of the balance towards
the configured cold-storage address. Nothing is signed or broadcast.

Provider failures skip the address; no balance is ever assumed.

Usage:
    from ledger.sweeps import sweep_store_addresses

    intents = sweep_store_addresses(store)
"""

from __future__ import annotations

import logging
from decimal import ROUND_DOWN, Decimal

from django.conf import settings

from chains.assets import SWEEP_THRESHOLDS
from chains.exceptions import ChainError
from chains.pool import ChainProviderPool, get_pool
from invoices.models import Invoice, InvoiceStatus
from ledger.models import PayoutStatus, SweepIntent
from merchants.models import Store

logger = logging.getLogger(__name__)

SWEEP_FRACTION = Decimal("0.95")
SWEEP_INVOICE_LIMIT = 100
AMOUNT_PLACES = Decimal("0.00000001")


def addresses_to_check(store: Store) -> list[tuple[str, str]]:
    """
    Distinct (address, asset) pairs of the store's paid and confirmed invoices.

    One EVM address can hold both a native coin and tokens, so each asset
    on an address is checked on its own.
    """
    rows = (
        Invoice.objects.filter(
            store=store,
            status__in=[InvoiceStatus.PAID, InvoiceStatus.CONFIRMED],
        )
        .order_by("-created_at")
        .values_list("address", "asset")[:SWEEP_INVOICE_LIMIT]
    )
    return list(dict.fromkeys(rows))


def sweep_address(
    store: Store,
    address: str,
    asset: str,
    pool: ChainProviderPool | None = None,
) -> SweepIntent | None:
    """
    Record a sweep intent for one address if its balance is high enough.

    Returns:
        The recorded SweepIntent, or None when below threshold, when no
        cold-storage address is configured, when a pending intent already
        covers the address or when every provider failed
    """
    pool = pool or get_pool()
    if SweepIntent.objects.filter(
        store=store,
        asset=asset,
        from_address=address,
        status=PayoutStatus.PENDING,
    ).exists():
        logger.debug(
            f"Pending sweep intent already recorded for {address} {asset}",
            extra={"store_id": str(store.pk), "asset": asset, "address": address},
        )
        return None

    cold_address = settings.COLD_STORAGE_ADDRESSES.get(asset)
    if not cold_address:
        logger.warning(
            f"No cold storage address configured for {asset}, skipping sweep",
            extra={"store_id": str(store.pk), "asset": asset},
        )
        return None

    try:
        balance = pool.get_balance(asset, address)
    except ChainError as e:
        logger.warning(
            f"Balance check failed for {address}, skipping sweep: {e}",
            extra={"store_id": str(store.pk), "asset": asset, "address": address},
        )
        return None

    threshold = SWEEP_THRESHOLDS[asset]
    if balance < threshold:
        logger.debug(
            f"Address {address} balance {balance} {asset} below threshold {threshold}",
            extra={"store_id": str(store.pk), "asset": asset},
        )
        return None

    amount = (balance * SWEEP_FRACTION).quantize(AMOUNT_PLACES, rounding=ROUND_DOWN)
    intent = SweepIntent.objects.create(
        store=store,
        asset=asset,
        from_address=address,
        to_address=cold_address,
        amount=amount,
    )
    logger.info(
        f"Sweep intent recorded: {amount} {asset} from {address} to {cold_address}",
        extra={
            "sweep_id": str(intent.id),
            "store_id": str(store.pk),
            "asset": asset,
            "amount": str(amount),
        },
    )
    return intent


def sweep_store_addresses(
    store: Store,
    pool: ChainProviderPool | None = None,
) -> list[SweepIntent]:
    """Check every candidate address of a store and record sweep intents."""
    intents = []
    for address, asset in addresses_to_check(store):
        intent = sweep_address(store, address, asset, pool=pool)
        if intent:
            intents.append(intent)
    return intents
