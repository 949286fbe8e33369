"""
TTL-bounded USD rate cache.

Rates are stored in Django's cache backend (Redis in production) so every
web and worker process quotes the same value inside a TTL window.

Lookup:
    1. Fresh cached entry (age < TTL): returned as-is
    2. Otherwise: fetched from the price source and cached
    3. Source failure: static fallback rate with +/-2% jitter, cached for
       the same TTL and logged as synthetic

Callers cannot tell a synthetic rate from a real one; the log line and
the "synthetic" flag in stats() are the only markers.

Usage:
    from rates.cache import rate_cache

    rate = rate_cache.get_rate("btc")
    quoted = rate_cache.get_rate_with_buffer("btc", 0.5)
    rate_cache.stats()  # {"size": 1, "ttl": 60, "entries": [...]}
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from decimal import Decimal

from django.conf import settings
from django.core.cache import cache

from chains.assets import Asset, is_supported_asset
from chains.exceptions import UnsupportedAsset
from rates.exceptions import RateSourceError
from rates.sources import fetch_usd_price

logger = logging.getLogger(__name__)

FALLBACK_RATES: dict[str, Decimal] = {
    Asset.BTC: Decimal("45000"),
    Asset.ETH: Decimal("2500"),
    Asset.BNB: Decimal("300"),
    Asset.USDT_ERC20: Decimal("1.0"),
    Asset.USDT_BEP20: Decimal("1.0"),
    Asset.USDT_TRC20: Decimal("1.0"),
}

RATE_PLACES = Decimal("0.00000001")


class RateCache:
    """
    Per-asset USD rate cache with synthetic fallback.

    Attributes:
        ttl: Entry lifetime in seconds
        fetcher: Callable returning a live rate (defaults to the CoinGecko source)
    """

    key_prefix = "rates:usd"

    def __init__(
        self,
        ttl: int | None = None,
        fetcher: Callable[[str], Decimal] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._ttl = ttl
        self.fetcher = fetcher
        self.clock = clock

    @property
    def ttl(self) -> int:
        return self._ttl if self._ttl is not None else settings.RATE_CACHE_TTL_SECONDS

    def _key(self, asset: str) -> str:
        return f"{self.key_prefix}:{asset}"

    def get_rate(self, asset: str) -> Decimal:
        """
        Return the USD rate for an asset.

        Raises:
            UnsupportedAsset: If the asset code is unknown
        """
        if not is_supported_asset(asset):
            raise UnsupportedAsset(asset)

        entry = cache.get(self._key(asset))
        if entry and self.clock() - entry["fetched_at"] < self.ttl:
            return Decimal(entry["rate"])

        synthetic = False
        try:
            rate = (self.fetcher or fetch_usd_price)(asset)
        except RateSourceError as e:
            jitter = Decimal(str(random.uniform(0.98, 1.02)))
            rate = (FALLBACK_RATES[asset] * jitter).quantize(RATE_PLACES)
            synthetic = True
            logger.warning(
                f"Rate fetch failed for {asset}, using synthetic rate {rate}: {e.message}",
                extra={"asset": asset, "rate": str(rate), "synthetic": True},
            )
        else:
            logger.info(
                f"Rate fetched for {asset}: {rate}",
                extra={"asset": asset, "rate": str(rate)},
            )

        cache.set(
            self._key(asset),
            {"rate": str(rate), "fetched_at": self.clock(), "synthetic": synthetic},
            timeout=self.ttl,
        )
        return rate

    def get_rate_with_buffer(self, asset: str, buffer_pct: Decimal | float = Decimal("0.5")) -> Decimal:
        """Return rate x (1 + buffer_pct/100)."""
        rate = self.get_rate(asset)
        return rate * (1 + Decimal(str(buffer_pct)) / 100)

    def stats(self) -> dict:
        """Cache size, TTL and per-entry age in seconds."""
        now = self.clock()
        entries = []
        for asset in Asset.values:
            entry = cache.get(self._key(asset))
            if not entry:
                continue
            age = now - entry["fetched_at"]
            entries.append(
                {
                    "asset": asset,
                    "rate": entry["rate"],
                    "age": round(age, 3),
                    "expired": age >= self.ttl,
                    "synthetic": entry.get("synthetic", False),
                }
            )
        return {"size": len(entries), "ttl": self.ttl, "entries": entries}

    def clear(self) -> None:
        cache.delete_many([self._key(asset) for asset in Asset.values])
        logger.info("Rate cache cleared")


# Shared instance used by invoice creation and the rate endpoints
rate_cache = RateCache()
