"""
Deposit address derivation.

The deriver is a plain callable configured by dotted path in
INVOICE_ADDRESS_DERIVER. It receives (store, asset) and returns the
address the invoice will watch. The default reads the store's configured
deposit address for the asset.

Usage:
    from invoices.addresses import deposit_address_for

    address = deposit_address_for(store, "usdt_erc20")

Custom deriver (settings):
    INVOICE_ADDRESS_DERIVER = "wallets.hd.derive_address"
"""

from __future__ import annotations

from collections.abc import Callable

from django.conf import settings
from django.utils.module_loading import import_string

from invoices.exceptions import AddressUnavailable
from merchants.models import Store


def store_deposit_address(store: Store, asset: str) -> str:
    """
    Default deriver: the store's deposit address for the asset.

    Raises:
        AddressUnavailable: If the store has no address for the asset
    """
    address = (store.deposit_addresses or {}).get(asset)
    if not address:
        raise AddressUnavailable(
            f"Store has no deposit address for {asset}",
            details={"store_id": str(store.pk), "asset": asset},
        )
    return address


def get_address_deriver() -> Callable[[Store, str], str]:
    return import_string(settings.INVOICE_ADDRESS_DERIVER)


def deposit_address_for(store: Store, asset: str) -> str:
    return get_address_deriver()(store, asset)
