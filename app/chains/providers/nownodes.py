"""
NowNodes backend.

A single multi-chain gateway; the chain is selected by the first path
segment (/btc, /eth, /bsc, /tron).
"""

from __future__ import annotations

from chains.assets import Chain
from chains.providers.base import HttpChainProvider


class NowNodesProvider(HttpChainProvider):
    """Gateway backend covering all four supported chains."""

    name = "nownodes"
    chains = (Chain.BITCOIN, Chain.ETHEREUM, Chain.BSC, Chain.TRON)

    def build_base_url(self) -> str:
        return f"https://{self.network}.nownodes.io"
