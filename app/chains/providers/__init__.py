"""
Chain provider backends.

Backends are a closed set of classes keyed by name. The pool builds one
instance per (backend, chain) from settings.

Usage:
    from chains.providers import build_provider

    provider = build_provider("nownodes", "bitcoin", api_key="...")
    height = provider.get_current_block_height()
"""

from __future__ import annotations

from chains.providers.base import ChainProvider, ChainTransaction, HttpChainProvider
from chains.providers.getblock import GetBlockProvider
from chains.providers.nownodes import NowNodesProvider
from chains.providers.quicknode import QuickNodeProvider

PROVIDERS: dict[str, type[HttpChainProvider]] = {
    QuickNodeProvider.name: QuickNodeProvider,
    NowNodesProvider.name: NowNodesProvider,
    GetBlockProvider.name: GetBlockProvider,
}


def build_provider(
    name: str,
    chain: str,
    api_key: str = "",
    network: str = "mainnet",
    timeout: float | None = None,
) -> ChainProvider:
    """
    Instantiate a backend by name for one chain.

    Raises:
        KeyError: If the backend name is unknown
        ValueError: If the backend does not serve the chain
    """
    provider_class = PROVIDERS[name]
    return provider_class(chain=chain, api_key=api_key, network=network, timeout=timeout)


__all__ = [
    "PROVIDERS",
    "ChainProvider",
    "ChainTransaction",
    "GetBlockProvider",
    "HttpChainProvider",
    "NowNodesProvider",
    "QuickNodeProvider",
    "build_provider",
]
