"""
Base provider protocol and shared HTTP plumbing.

Defines the capability interface every chain backend implements and a
base class that handles transport, authentication and the JSON-RPC /
REST shapes the supported node services share.

Usage:
    from chains.providers.base import ChainProvider, HttpChainProvider

    class MyNodeProvider(HttpChainProvider):
        name = "mynode"
        chains = ("ethereum",)

        def build_base_url(self) -> str:
            return "https://eth.mynode.example"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

import requests
from django.conf import settings

from chains.assets import (
    NATIVE_DECIMALS,
    TOKEN_CONTRACTS,
    TOKEN_DECIMALS,
    Asset,
    Chain,
    chain_for_asset,
)
from chains.exceptions import ProviderRequestError
from rates.exceptions import RateSourceError
from rates.sources import fetch_usd_price

logger = logging.getLogger(__name__)

# balanceOf(address) selector
ERC20_BALANCE_OF = "0x70a08231"


@dataclass(frozen=True)
class ChainTransaction:
    """
    One on-chain transfer as reported by a backend.

    Fields:
        txid: Chain-unique transaction hash
        block_height: Block containing the transaction (None if unmined)
        confirmations: Confirmations reported by the backend
        amount: Transferred amount in whole asset units
        from_address / to_address: Transfer endpoints
        asset: Asset code the backend attributed the transfer to
        timestamp: Unix seconds, if reported
    """

    txid: str
    block_height: int | None
    confirmations: int
    amount: Decimal
    from_address: str = ""
    to_address: str = ""
    asset: str = ""
    timestamp: int | None = None


@runtime_checkable
class ChainProvider(Protocol):
    """
    Protocol for chain data backends.

    One instance serves one chain; the pool holds an ordered list of
    instances per chain.

    Required Attributes:
        name: Stable backend name used for health tracking
        chain: Chain this instance is bound to
    """

    name: str
    chain: str

    def get_balance(self, address: str, asset: str) -> Decimal:
        """Return the address balance of asset in whole units."""
        ...

    def get_transactions(self, address: str) -> list[ChainTransaction]:
        """Return transactions touching address, newest first."""
        ...

    def get_current_block_height(self) -> int:
        """Return the chain tip height."""
        ...

    def broadcast_transaction(self, signed_tx: str) -> str:
        """Submit a signed transaction and return its txid."""
        ...

    def get_rate(self, asset: str) -> Decimal:
        """Return the USD price of asset."""
        ...


class HttpChainProvider:
    """
    Base implementation shared by the HTTP node services.

    Subclasses set name/chains and override build_base_url(); endpoint
    layout differences are handled by the small hook methods below.

    Attributes:
        chain: Chain this instance is bound to
        api_key: Service API key (sent as bearer token)
        network: "mainnet" or "testnet"
        timeout: Per-request timeout in seconds
    """

    name: str = ""
    chains: tuple[str, ...] = ()

    def __init__(
        self,
        chain: str,
        api_key: str = "",
        network: str = "mainnet",
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        if chain not in self.chains:
            raise ValueError(f"{self.name} does not serve chain {chain}")
        self.chain = chain
        self.api_key = api_key
        self.network = network
        self.timeout = (
            timeout
            if timeout is not None
            else settings.CHAIN_PROVIDER_TIMEOUT_SECONDS
        )
        self.session = session or requests.Session()
        self.base_url = self.build_base_url().rstrip("/")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(chain={self.chain!r})"

    # ==========================================================================
    # Hooks
    # ==========================================================================

    def build_base_url(self) -> str:
        raise NotImplementedError

    def chain_path(self) -> str:
        """Path segment selecting this chain on multi-chain gateways."""
        return {
            Chain.BITCOIN: "/btc",
            Chain.ETHEREUM: "/eth",
            Chain.BSC: "/bsc",
            Chain.TRON: "/tron",
        }[self.chain]

    def btc_balance_path(self, address: str) -> str:
        return f"/btc/address/{address}"

    def btc_balance_field(self) -> str:
        return "balance"

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    # ==========================================================================
    # Transport
    # ==========================================================================

    def request(self, method: str, path: str, payload: dict | None = None) -> Any:
        """
        Issue one HTTP call and return the decoded JSON body.

        Raises:
            ProviderRequestError: On network errors, timeouts, non-2xx
                responses or undecodable bodies
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=self.headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ProviderRequestError(
                f"Provider {self.name} request failed: {e}",
                provider=self.name,
            ) from e

        if not response.ok:
            raise ProviderRequestError(
                f"Provider {self.name} request failed: "
                f"{response.status_code} {response.reason}",
                provider=self.name,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderRequestError(
                f"Provider {self.name} returned invalid JSON",
                provider=self.name,
                status_code=response.status_code,
            ) from e

    def rpc(self, method: str, params: list) -> Any:
        """Call a JSON-RPC method on this chain's endpoint and return result."""
        body = self.request(
            "POST",
            self.chain_path(),
            {"jsonrpc": "2.0", "method": method, "params": params, "id": 1},
        )
        if not isinstance(body, dict) or body.get("error"):
            raise ProviderRequestError(
                f"Provider {self.name} RPC {method} error: "
                f"{body.get('error') if isinstance(body, dict) else body}",
                provider=self.name,
            )
        return body.get("result")

    # ==========================================================================
    # Operations
    # ==========================================================================

    def get_balance(self, address: str, asset: str) -> Decimal:
        if chain_for_asset(asset) != self.chain:
            raise ProviderRequestError(
                f"Asset {asset} is not on chain {self.chain}",
                provider=self.name,
            )

        if asset == Asset.BTC:
            body = self.request("GET", self.btc_balance_path(address))
            satoshis = body.get(self.btc_balance_field(), 0)
            return Decimal(satoshis) / (10 ** NATIVE_DECIMALS[Asset.BTC])

        if asset in (Asset.ETH, Asset.BNB):
            result = self.rpc("eth_getBalance", [address, "latest"])
            return Decimal(int(result, 16)) / (10 ** NATIVE_DECIMALS[asset])

        if asset == Asset.USDT_TRC20:
            result = self.rpc("wallet/getaccount", [{"address": address}]) or {}
            return Decimal(result.get("balance", 0)) / (10 ** TOKEN_DECIMALS[asset])

        call = {
            "to": TOKEN_CONTRACTS[asset],
            "data": f"{ERC20_BALANCE_OF}{address[2:].lower().rjust(64, '0')}",
        }
        result = self.rpc("eth_call", [call, "latest"])
        return Decimal(int(result, 16)) / (10 ** TOKEN_DECIMALS[asset])

    def get_transactions(self, address: str) -> list[ChainTransaction]:
        body = self.request("GET", f"{self.chain_path()}/address/{address}/transactions")
        items = body.get("transactions") if isinstance(body, dict) else None
        if items is None:
            raise ProviderRequestError(
                f"Provider {self.name} response missing transactions",
                provider=self.name,
            )
        return [self.parse_transaction(item) for item in items]

    def parse_transaction(self, item: dict) -> ChainTransaction:
        block = item.get("blockNumber")
        return ChainTransaction(
            txid=item["hash"],
            block_height=int(block) if block is not None else None,
            confirmations=int(item.get("confirmations") or 0),
            amount=Decimal(str(item.get("value", "0"))),
            from_address=item.get("from") or "",
            to_address=item.get("to") or "",
            asset=item.get("asset") or "",
            timestamp=int(item["timestamp"]) if item.get("timestamp") is not None else None,
        )

    def get_current_block_height(self) -> int:
        if self.chain == Chain.BITCOIN:
            body = self.request("GET", "/btc/blocks/tip/height")
            return int(body["height"] if isinstance(body, dict) else body)
        if self.chain == Chain.TRON:
            result = self.rpc("wallet/getnowblock", []) or {}
            return int(result["block_header"]["raw_data"]["number"])
        return int(self.rpc("eth_blockNumber", []), 16)

    def broadcast_transaction(self, signed_tx: str) -> str:
        if self.chain == Chain.BITCOIN:
            body = self.request("POST", "/btc/tx", {"hex": signed_tx})
            return body["txid"]
        if self.chain == Chain.TRON:
            result = self.rpc("wallet/broadcasthex", [{"transaction": signed_tx}]) or {}
            return result["txid"]
        return self.rpc("eth_sendRawTransaction", [signed_tx])

    def get_rate(self, asset: str) -> Decimal:
        # Node services carry no price feed; every backend quotes the shared source
        try:
            return fetch_usd_price(asset)
        except RateSourceError as e:
            raise ProviderRequestError(
                f"Provider {self.name} rate lookup failed for {asset}: {e.message}",
                provider=self.name,
            ) from e
