"""
Tests for the provider status endpoint.
"""

from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status

from chains import pool as pool_module
from chains.health import HealthStatus, ProviderHealthRegistry
from chains.pool import ChainProviderPool


@pytest.fixture
def fake_pool(monkeypatch):
    registry = ProviderHealthRegistry()
    registry.mark("ethereum", "quicknode", HealthStatus.HEALTHY, response_time_ms=100)
    registry.mark("ethereum", "nownodes", HealthStatus.DEGRADED, response_time_ms=300)
    registry.register("tron", "nownodes")
    pool = ChainProviderPool(registry)
    monkeypatch.setattr(pool_module, "_pool", pool)
    return pool


@pytest.mark.django_db
class TestProviderStatusView:
    """Test GET /api/v1/providers/status/."""

    def test_requires_staff(self, authenticated_client):
        """Regular users are rejected."""
        response = authenticated_client.get(reverse("chains:provider-status"))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_returns_records_and_summary(self, staff_client, fake_pool):
        """Staff see every record and aggregate counts."""
        response = staff_client.get(reverse("chains:provider-status"))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data["providers"]) == 3
        summary = response.data["summary"]
        assert summary["total_providers"] == 3
        assert summary["healthy_providers"] == 2
        assert summary["degraded_providers"] == 1
        assert summary["offline_providers"] == 0
        assert summary["average_response_time_ms"] == 200
