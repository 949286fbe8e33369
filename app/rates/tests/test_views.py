"""
Tests for rate endpoints.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

import pytest
from django.urls import reverse
from rest_framework import status


@pytest.mark.django_db
class TestRateViews:
    """Test public and staff rate endpoints."""

    @patch("rates.cache.fetch_usd_price", return_value=Decimal("45123.5"))
    def test_get_rate(self, mock_fetch, api_client):
        response = api_client.get(reverse("rates:rate"), {"asset": "btc"})

        assert response.status_code == status.HTTP_200_OK
        assert response.data["asset"] == "btc"
        assert Decimal(response.data["rate"]) == Decimal("45123.5")
        assert response.data["currency"] == "USD"

    def test_get_rate_rejects_unknown_asset(self, api_client):
        response = api_client.get(reverse("rates:rate"), {"asset": "doge"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @patch("rates.cache.fetch_usd_price", return_value=Decimal("1"))
    def test_all_rates_lists_every_asset(self, mock_fetch, api_client):
        response = api_client.get(reverse("rates:all"))

        assert response.status_code == status.HTTP_200_OK
        assert set(response.data["rates"]) == {
            "btc",
            "eth",
            "bnb",
            "usdt_erc20",
            "usdt_bep20",
            "usdt_trc20",
        }

    def test_cache_stats_requires_staff(self, authenticated_client):
        response = authenticated_client.get(reverse("rates:cache-stats"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @patch("rates.cache.fetch_usd_price", return_value=Decimal("2500"))
    def test_clear_cache(self, mock_fetch, api_client, staff_client):
        api_client.get(reverse("rates:rate"), {"asset": "eth"})
        assert staff_client.get(reverse("rates:cache-stats")).data["size"] == 1

        response = staff_client.post(reverse("rates:clear-cache"))

        assert response.status_code == status.HTTP_200_OK
        assert staff_client.get(reverse("rates:cache-stats")).data["size"] == 0
