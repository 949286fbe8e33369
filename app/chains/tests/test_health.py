"""
Tests for ProviderHealthRegistry.
"""

from __future__ import annotations

from chains.health import HealthStatus, ProviderHealthRegistry


class TestProviderHealthRegistry:
    """Test health record bookkeeping."""

    def test_unknown_backend_reports_healthy(self):
        """Backends never seen are treated as healthy."""
        registry = ProviderHealthRegistry()

        assert registry.status("ethereum", "quicknode") == HealthStatus.HEALTHY
        assert registry.priority("ethereum", "quicknode") == 0
        assert registry.get("ethereum", "quicknode") is None

    def test_mark_updates_status_and_priority(self):
        """Marking degraded lowers priority; offline lowers it further."""
        registry = ProviderHealthRegistry()
        registry.register("bsc", "getblock")

        registry.mark("bsc", "getblock", HealthStatus.DEGRADED)
        assert registry.priority("bsc", "getblock") == 1

        registry.mark("bsc", "getblock", HealthStatus.OFFLINE)
        assert registry.priority("bsc", "getblock") == 2

    def test_mark_keeps_previous_response_time_when_not_given(self):
        """A failure mark keeps the last measured response time."""
        registry = ProviderHealthRegistry()
        registry.mark("bitcoin", "nownodes", HealthStatus.HEALTHY, response_time_ms=120)

        record = registry.mark("bitcoin", "nownodes", HealthStatus.DEGRADED)

        assert record.response_time_ms == 120
        assert record.status == HealthStatus.DEGRADED

    def test_snapshot_sorted_by_chain_then_provider(self):
        """Snapshot order is deterministic."""
        registry = ProviderHealthRegistry()
        registry.register("ethereum", "quicknode")
        registry.register("bitcoin", "nownodes")
        registry.register("ethereum", "getblock")

        keys = [(r.chain, r.provider) for r in registry.snapshot()]

        assert keys == [
            ("bitcoin", "nownodes"),
            ("ethereum", "getblock"),
            ("ethereum", "quicknode"),
        ]

    def test_reset_clears_records(self):
        """Reset forgets every backend."""
        registry = ProviderHealthRegistry()
        registry.register("tron", "nownodes")

        registry.reset()

        assert len(registry) == 0

    def test_to_dict_serializes_status_value(self):
        """Records serialize with plain string status."""
        registry = ProviderHealthRegistry()
        record = registry.register("tron", "nownodes")

        data = record.to_dict()

        assert data["status"] == "healthy"
        assert data["chain"] == "tron"
        assert data["provider"] == "nownodes"
