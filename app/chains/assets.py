"""
Supported assets and the chains they settle on.

Every asset code the system accepts maps to exactly one chain. The chain
decides which provider backends are consulted and whose block height is
used for confirmation counting.

Usage:
    from chains.assets import Asset, chain_for_asset

    chain = chain_for_asset("usdt_erc20")  # Chain.ETHEREUM
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models

from chains.exceptions import UnsupportedAsset


class Chain(models.TextChoices):
    """Blockchains the provider pool can talk to."""

    BITCOIN = "bitcoin", "Bitcoin"
    ETHEREUM = "ethereum", "Ethereum"
    BSC = "bsc", "BNB Smart Chain"
    TRON = "tron", "Tron"


class Asset(models.TextChoices):
    """
    Asset codes accepted for invoices, balances and webhooks.

    Token variants carry their network in the code so the same ticker on
    two chains never shares a balance.
    """

    BTC = "btc", "Bitcoin"
    ETH = "eth", "Ether"
    BNB = "bnb", "BNB"
    USDT_ERC20 = "usdt_erc20", "USDT (ERC-20)"
    USDT_BEP20 = "usdt_bep20", "USDT (BEP-20)"
    USDT_TRC20 = "usdt_trc20", "USDT (TRC-20)"


ASSET_CHAINS: dict[str, str] = {
    Asset.BTC: Chain.BITCOIN,
    Asset.ETH: Chain.ETHEREUM,
    Asset.USDT_ERC20: Chain.ETHEREUM,
    Asset.BNB: Chain.BSC,
    Asset.USDT_BEP20: Chain.BSC,
    Asset.USDT_TRC20: Chain.TRON,
}

# Token contracts for balance lookups (eth_call balanceOf)
TOKEN_CONTRACTS: dict[str, str] = {
    Asset.USDT_ERC20: "0xdAC17F958D2ee523a2206206994597C13D831ec7",
    Asset.USDT_BEP20: "0x55d398326f99059fF775485246999027B3197955",
    Asset.USDT_TRC20: "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t",
}

TOKEN_DECIMALS: dict[str, int] = {
    Asset.USDT_ERC20: 6,
    Asset.USDT_BEP20: 18,
    Asset.USDT_TRC20: 6,
}

NATIVE_DECIMALS: dict[str, int] = {
    Asset.BTC: 8,
    Asset.ETH: 18,
    Asset.BNB: 18,
}

# Confirmations at which a payment counts as seen / final, per asset.
# Stores may override per asset through Store.confirm_policy.
DEFAULT_CONFIRMATION_POLICY: dict[str, dict[str, int]] = {
    Asset.BTC: {"paidAt": 1, "confirmedAt": 3},
    Asset.ETH: {"paidAt": 1, "confirmedAt": 12},
    Asset.BNB: {"paidAt": 1, "confirmedAt": 15},
    Asset.USDT_ERC20: {"paidAt": 1, "confirmedAt": 12},
    Asset.USDT_BEP20: {"paidAt": 1, "confirmedAt": 15},
    Asset.USDT_TRC20: {"paidAt": 1, "confirmedAt": 20},
}

# Minimum hot-address balance worth recording a sweep intent for
SWEEP_THRESHOLDS: dict[str, Decimal] = {
    Asset.BTC: Decimal("0.001"),
    Asset.ETH: Decimal("0.01"),
    Asset.BNB: Decimal("0.1"),
    Asset.USDT_ERC20: Decimal("100"),
    Asset.USDT_BEP20: Decimal("100"),
    Asset.USDT_TRC20: Decimal("100"),
}


def is_supported_asset(asset: str) -> bool:
    """Return True if the asset code is known."""
    return asset in ASSET_CHAINS


def chain_for_asset(asset: str) -> str:
    """
    Resolve the chain an asset settles on.

    Args:
        asset: Asset code (e.g. "btc", "usdt_trc20")

    Returns:
        Chain value (e.g. "bitcoin", "tron")

    Raises:
        UnsupportedAsset: If the asset code is unknown
    """
    try:
        return str(ASSET_CHAINS[asset])
    except KeyError:
        raise UnsupportedAsset(asset) from None


# Hex addresses on these chains are case-insensitive (EIP-55 casing is a checksum)
CASE_INSENSITIVE_CHAINS = frozenset({Chain.ETHEREUM, Chain.BSC})


def normalize_address(asset: str, address: str) -> str:
    """Canonical form of an address on the asset's chain."""
    if chain_for_asset(asset) in CASE_INSENSITIVE_CHAINS:
        return address.lower()
    return address


def same_address(asset: str, left: str, right: str) -> bool:
    """Compare two addresses on the asset's chain."""
    return normalize_address(asset, left) == normalize_address(asset, right)


def confirmation_policy_for(asset: str, store_policy: dict | None = None) -> dict[str, int]:
    """
    Return the {paidAt, confirmedAt} thresholds for an asset.

    A store-level entry for the asset wins over the default policy.
    Partial store entries are completed from the default.
    """
    chain_for_asset(asset)
    policy = dict(DEFAULT_CONFIRMATION_POLICY[asset])
    if store_policy and isinstance(store_policy.get(asset), dict):
        policy.update(
            {
                key: int(value)
                for key, value in store_policy[asset].items()
                if key in ("paidAt", "confirmedAt")
            }
        )
    return policy
