"""
Upstream USD price source (CoinGecko simple price API).
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

import requests
from django.conf import settings

from chains.assets import Asset
from rates.exceptions import RateSourceError

logger = logging.getLogger(__name__)

COINGECKO_IDS: dict[str, str] = {
    Asset.BTC: "bitcoin",
    Asset.ETH: "ethereum",
    Asset.BNB: "binancecoin",
    Asset.USDT_ERC20: "tether",
    Asset.USDT_BEP20: "tether",
    Asset.USDT_TRC20: "tether",
}


def fetch_usd_price(asset: str) -> Decimal:
    """
    Fetch the current USD price for an asset.

    Args:
        asset: Asset code (e.g. "btc")

    Returns:
        Positive USD price

    Raises:
        RateSourceError: On unknown asset, HTTP failure, timeout or a
            response without a usable price
    """
    coin_id = COINGECKO_IDS.get(asset)
    if not coin_id:
        raise RateSourceError(
            f"Unsupported asset for rate: {asset}",
            details={"asset": asset},
        )

    try:
        response = requests.get(
            settings.RATE_SOURCE_URL,
            params={"ids": coin_id, "vs_currencies": "usd"},
            timeout=settings.RATE_HTTP_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        raise RateSourceError(
            f"Rate source request failed for {asset}: {e}",
            details={"asset": asset},
        ) from e

    price = (data.get(coin_id) or {}).get("usd") if isinstance(data, dict) else None
    try:
        rate = Decimal(str(price)) if price is not None else None
    except InvalidOperation:
        rate = None

    if not rate or rate <= 0:
        raise RateSourceError(
            f"No rate data for {asset}",
            details={"asset": asset},
        )
    return rate
