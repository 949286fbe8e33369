"""
Health-aware failover across chain provider backends.

ChainProviderPool holds an ordered list of backends per chain and runs
each operation against them in health order until one succeeds.

Ordering:
    Backends are stable-sorted by health priority (healthy, degraded,
    offline). Backends with equal priority keep registration order.

Health updates:
    - Failure: backend marked degraded, error logged, next backend tried
    - Success: backend marked healthy with the call duration recorded
    - Health never decays by time alone

Usage:
    from chains.pool import get_pool

    pool = get_pool()
    txs = pool.get_transactions("usdt_erc20", "0xabc...")
    height = pool.get_current_block_height("ethereum")
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from decimal import Decimal
from typing import TypeVar

from django.conf import settings

from chains.assets import chain_for_asset
from chains.exceptions import AllProvidersFailed
from chains.health import HealthRecord, HealthStatus, ProviderHealthRegistry
from chains.health import registry as default_registry
from chains.providers import ChainProvider, ChainTransaction, build_provider

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChainProviderPool:
    """
    Ordered backends per chain with sequential failover.

    Attributes:
        registry: Health registry shared with the status endpoint
    """

    def __init__(self, registry: ProviderHealthRegistry | None = None):
        self.registry = registry if registry is not None else default_registry
        self._backends: dict[str, list[ChainProvider]] = {}

    def register(self, chain: str, provider: ChainProvider) -> None:
        """Append a backend to the chain's list and start it healthy."""
        self._backends.setdefault(chain, []).append(provider)
        self.registry.register(chain, provider.name)

    def backends(self, chain: str) -> list[ChainProvider]:
        """Backends for a chain in health order."""
        providers = self._backends.get(chain, [])
        # sorted() is stable, so registration order breaks ties
        return sorted(
            providers,
            key=lambda provider: self.registry.priority(chain, provider.name),
        )

    def execute_with_fallback(
        self,
        chain: str,
        op: Callable[[ChainProvider], T],
        operation: str = "operation",
    ) -> T:
        """
        Run op against each backend for the chain until one succeeds.

        Args:
            chain: Chain whose backends are tried
            op: Callable receiving a backend and returning the result
            operation: Name used in log messages

        Returns:
            The first successful result

        Raises:
            AllProvidersFailed: If every backend failed or none is registered
        """
        errors: list[str] = []

        for provider in self.backends(chain):
            started = time.monotonic()
            try:
                result = op(provider)
            except Exception as e:
                self.registry.mark(chain, provider.name, HealthStatus.DEGRADED)
                errors.append(f"{provider.name}: {e}")
                logger.warning(
                    f"Provider {provider.name} failed {operation} on {chain}: {e}",
                    extra={
                        "chain": chain,
                        "provider": provider.name,
                        "operation": operation,
                    },
                )
                continue

            elapsed_ms = int((time.monotonic() - started) * 1000)
            self.registry.mark(
                chain,
                provider.name,
                HealthStatus.HEALTHY,
                response_time_ms=elapsed_ms,
            )
            return result

        logger.error(
            f"All providers failed {operation} on {chain}",
            extra={"chain": chain, "operation": operation, "errors": errors},
        )
        raise AllProvidersFailed(chain, errors)

    # ==========================================================================
    # Operations
    # ==========================================================================

    def get_balance(self, asset: str, address: str) -> Decimal:
        chain = chain_for_asset(asset)
        return self.execute_with_fallback(
            chain,
            lambda provider: provider.get_balance(address, asset),
            operation="get_balance",
        )

    def get_transactions(self, asset: str, address: str) -> list[ChainTransaction]:
        chain = chain_for_asset(asset)
        return self.execute_with_fallback(
            chain,
            lambda provider: provider.get_transactions(address),
            operation="get_transactions",
        )

    def get_current_block_height(self, chain: str) -> int:
        return self.execute_with_fallback(
            chain,
            lambda provider: provider.get_current_block_height(),
            operation="get_current_block_height",
        )

    def broadcast_transaction(self, asset: str, signed_tx: str) -> str:
        chain = chain_for_asset(asset)
        return self.execute_with_fallback(
            chain,
            lambda provider: provider.broadcast_transaction(signed_tx),
            operation="broadcast_transaction",
        )

    def get_rate(self, asset: str) -> Decimal:
        chain = chain_for_asset(asset)
        return self.execute_with_fallback(
            chain,
            lambda provider: provider.get_rate(asset),
            operation="get_rate",
        )

    def health_snapshot(self) -> list[HealthRecord]:
        return self.registry.snapshot()


# =============================================================================
# Process singleton
# =============================================================================

_pool: ChainProviderPool | None = None
_pool_lock = threading.Lock()


def build_pool_from_settings(
    registry: ProviderHealthRegistry | None = None,
) -> ChainProviderPool:
    """
    Build a pool from CHAIN_PROVIDER_ORDER and the provider API keys.

    Backends without an API key are still registered; the node service
    rejects the call and the pool moves on.
    """
    pool = ChainProviderPool(registry)
    api_keys = {
        "quicknode": settings.QUICKNODE_API_KEY,
        "nownodes": settings.NOWNODES_API_KEY,
        "getblock": settings.GETBLOCK_API_KEY,
    }

    for chain, names in settings.CHAIN_PROVIDER_ORDER.items():
        for name in names:
            provider = build_provider(
                name,
                chain,
                api_key=api_keys.get(name, ""),
                network=settings.CHAIN_PROVIDER_NETWORK,
            )
            pool.register(chain, provider)

    logger.info(
        "Chain provider pool initialized",
        extra={
            "chains": {
                chain: list(names)
                for chain, names in settings.CHAIN_PROVIDER_ORDER.items()
            }
        },
    )
    return pool


def get_pool() -> ChainProviderPool:
    """Return the process-wide pool, building it on first use."""
    global _pool
    if _pool is None:
        with _pool_lock:
            if _pool is None:
                _pool = build_pool_from_settings()
    return _pool


def reset_pool() -> None:
    """Drop the process pool and its health records."""
    global _pool
    with _pool_lock:
        _pool = None
        default_registry.reset()
