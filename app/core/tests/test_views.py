"""
Tests for the infrastructure health check.
"""

from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.urls import reverse


@pytest.mark.django_db
class TestHealthCheck:
    def test_healthy(self, api_client):
        response = api_client.get(reverse("health_check"))

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
        }

    def test_api_prefix_route(self, api_client):
        response = api_client.get(reverse("api_health_check"))

        assert response.status_code == 200

    def test_database_down_returns_503(self, api_client):
        with patch("core.views.connection") as mock_connection:
            mock_connection.cursor.side_effect = DatabaseError("down")
            response = api_client.get(reverse("health_check"))

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"
        assert response.json()["status"] == "unhealthy"

    def test_cache_miss_is_informational(self, api_client):
        with patch("core.views.cache") as mock_cache:
            mock_cache.get.return_value = None
            response = api_client.get(reverse("health_check"))

        assert response.status_code == 200
        assert response.json()["cache"] == "disconnected"
