"""
GetBlock backend.

Bitcoin balances come from the REST balance endpoint, which reports
the confirmed amount in satoshis under "confirmed".
"""

from __future__ import annotations

from chains.assets import Chain
from chains.providers.base import HttpChainProvider


class GetBlockProvider(HttpChainProvider):
    name = "getblock"
    chains = (Chain.BITCOIN, Chain.ETHEREUM, Chain.BSC)

    def build_base_url(self) -> str:
        return "https://go.getblock.io"

    def btc_balance_path(self, address: str) -> str:
        return f"/btc/{address}/balance"

    def btc_balance_field(self) -> str:
        return "confirmed"
