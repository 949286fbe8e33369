"""
Tests for RateCache.

These tests verify:
- Values are reused inside the TTL window
- Refetch after expiry
- Synthetic fallback stays within the jitter band and is cached
- Buffer math, stats and clear
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests
from django.core.cache import cache

from chains.exceptions import UnsupportedAsset
from rates.cache import RateCache
from rates.exceptions import RateSourceError
from rates.sources import fetch_usd_price


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture(autouse=True)
def clear_cache():
    """Clear cache before each test to ensure isolation."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def clock():
    return FakeClock()


class TestRateCacheLookup:
    """Test cache hits, misses and expiry."""

    def test_two_reads_within_ttl_return_same_value(self, clock):
        """The source is called once inside the TTL window."""
        fetcher = MagicMock(side_effect=[Decimal("2500.10"), Decimal("2600")])
        rates = RateCache(ttl=60, fetcher=fetcher, clock=clock)

        first = rates.get_rate("eth")
        clock.now += 59
        second = rates.get_rate("eth")

        assert first == second == Decimal("2500.10")
        assert fetcher.call_count == 1

    def test_refetches_after_ttl(self, clock):
        fetcher = MagicMock(side_effect=[Decimal("2500"), Decimal("2600")])
        rates = RateCache(ttl=60, fetcher=fetcher, clock=clock)

        rates.get_rate("eth")
        clock.now += 61

        assert rates.get_rate("eth") == Decimal("2600")
        assert fetcher.call_count == 2

    def test_unknown_asset_raises(self, clock):
        rates = RateCache(ttl=60, fetcher=MagicMock(), clock=clock)

        with pytest.raises(UnsupportedAsset):
            rates.get_rate("doge")


class TestSyntheticFallback:
    """Test behavior when the price source fails."""

    def test_fallback_within_jitter_band(self, clock):
        """Fallback is the static rate x [0.98, 1.02]."""
        fetcher = MagicMock(side_effect=RateSourceError("down"))
        rates = RateCache(ttl=60, fetcher=fetcher, clock=clock)

        rate = rates.get_rate("btc")

        assert Decimal("44100") <= rate <= Decimal("45900")

    def test_fallback_is_cached_for_ttl(self, clock):
        """A synthetic value is reused like a real one."""
        fetcher = MagicMock(side_effect=RateSourceError("down"))
        rates = RateCache(ttl=60, fetcher=fetcher, clock=clock)

        first = rates.get_rate("bnb")
        clock.now += 30
        second = rates.get_rate("bnb")

        assert first == second
        assert fetcher.call_count == 1
        assert rates.stats()["entries"][0]["synthetic"] is True


class TestBufferAndIntrospection:
    """Test buffer math, stats and clear."""

    def test_buffer_applied_upward(self, clock):
        rates = RateCache(ttl=60, fetcher=lambda asset: Decimal("1.0"), clock=clock)

        assert rates.get_rate_with_buffer("usdt_erc20", 0.5) == Decimal("1.005")

    def test_stats_reports_age_and_expiry(self, clock):
        rates = RateCache(ttl=60, fetcher=lambda asset: Decimal("300"), clock=clock)
        rates.get_rate("bnb")
        clock.now += 90

        stats = rates.stats()

        assert stats["size"] == 1
        assert stats["ttl"] == 60
        [entry] = stats["entries"]
        assert entry["asset"] == "bnb"
        assert entry["age"] == 90
        assert entry["expired"] is True

    def test_clear_empties_cache(self, clock):
        rates = RateCache(ttl=60, fetcher=lambda asset: Decimal("300"), clock=clock)
        rates.get_rate("bnb")

        rates.clear()

        assert rates.stats()["size"] == 0


class TestFetchUsdPrice:
    """Test the CoinGecko source."""

    @patch("rates.sources.requests.get")
    def test_parses_price(self, mock_get):
        mock_get.return_value.json.return_value = {"ethereum": {"usd": 2512.34}}

        assert fetch_usd_price("eth") == Decimal("2512.34")
        _, kwargs = mock_get.call_args
        assert kwargs["params"] == {"ids": "ethereum", "vs_currencies": "usd"}
        assert kwargs["timeout"] > 0

    @patch("rates.sources.requests.get")
    def test_http_error_raises(self, mock_get):
        mock_get.return_value.raise_for_status.side_effect = requests.HTTPError("500")

        with pytest.raises(RateSourceError):
            fetch_usd_price("btc")

    @patch("rates.sources.requests.get")
    def test_missing_price_raises(self, mock_get):
        mock_get.return_value.json.return_value = {}

        with pytest.raises(RateSourceError):
            fetch_usd_price("btc")
