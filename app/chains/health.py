"""
In-process health tracking for chain provider backends.

One record per (chain, backend name). The pool reads it to order backends
and writes it after every attempt. Nothing else changes a record: there is
no background probe and no time-based decay, so a degraded backend stays
degraded until it next succeeds.

The registry lives for the lifetime of the worker process and starts
empty. It is an ordering hint, never a source of truth, and is mutated
without cross-operation locking.

Usage:
    from chains.health import HealthStatus, registry

    registry.register("ethereum", "quicknode")
    registry.mark("ethereum", "quicknode", HealthStatus.DEGRADED)
    registry.priority("ethereum", "quicknode")  # 1
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from django.utils import timezone


class HealthStatus(str, Enum):
    """Backend health, ordered from most to least preferred."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    OFFLINE = "offline"


HEALTH_PRIORITY: dict[HealthStatus, int] = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.DEGRADED: 1,
    HealthStatus.OFFLINE: 2,
}


@dataclass
class HealthRecord:
    """Last known health of one backend on one chain."""

    chain: str
    provider: str
    status: HealthStatus
    last_check: datetime
    response_time_ms: int | None = None

    def to_dict(self) -> dict:
        return {
            "chain": self.chain,
            "provider": self.provider,
            "status": self.status.value,
            "last_check": self.last_check.isoformat(),
            "response_time_ms": self.response_time_ms,
        }


class ProviderHealthRegistry:
    """
    Map of (chain, provider) to HealthRecord.

    Unknown backends are reported as healthy so a freshly registered
    backend is tried in its registration slot.
    """

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], HealthRecord] = {}

    def register(self, chain: str, provider: str) -> HealthRecord:
        """Create (or reset) a healthy record for a backend."""
        record = HealthRecord(
            chain=chain,
            provider=provider,
            status=HealthStatus.HEALTHY,
            last_check=timezone.now(),
        )
        self._records[(chain, provider)] = record
        return record

    def mark(
        self,
        chain: str,
        provider: str,
        status: HealthStatus,
        response_time_ms: int | None = None,
    ) -> HealthRecord:
        """Record the outcome of an attempt against a backend."""
        previous = self._records.get((chain, provider))
        record = HealthRecord(
            chain=chain,
            provider=provider,
            status=status,
            last_check=timezone.now(),
            response_time_ms=(
                response_time_ms
                if response_time_ms is not None
                else (previous.response_time_ms if previous else None)
            ),
        )
        self._records[(chain, provider)] = record
        return record

    def status(self, chain: str, provider: str) -> HealthStatus:
        record = self._records.get((chain, provider))
        return record.status if record else HealthStatus.HEALTHY

    def priority(self, chain: str, provider: str) -> int:
        """Sort key for a backend: 0 healthy, 1 degraded, 2 offline."""
        return HEALTH_PRIORITY[self.status(chain, provider)]

    def get(self, chain: str, provider: str) -> HealthRecord | None:
        return self._records.get((chain, provider))

    def snapshot(self) -> list[HealthRecord]:
        """All records, ordered by chain then provider."""
        return [self._records[key] for key in sorted(self._records)]

    def reset(self) -> None:
        """Forget every record (process restart semantics)."""
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


# Process-wide registry shared by the default pool
registry = ProviderHealthRegistry()
