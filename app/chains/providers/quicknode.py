"""
QuickNode backend.

QuickNode exposes one endpoint per chain and network, so requests are
made against the chain root with no path prefix.
"""

from __future__ import annotations

from chains.assets import Chain
from chains.providers.base import HttpChainProvider


class QuickNodeProvider(HttpChainProvider):
    """EVM JSON-RPC backend for Ethereum and BSC."""

    name = "quicknode"
    chains = (Chain.ETHEREUM, Chain.BSC)

    def build_base_url(self) -> str:
        return f"https://api.quicknode.com/v1/{self.chain}/{self.network}"

    def chain_path(self) -> str:
        return ""
