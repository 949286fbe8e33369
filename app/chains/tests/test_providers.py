"""
Tests for the HTTP chain backends.

requests.Session is replaced with a mock so no network traffic occurs.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from chains.exceptions import ProviderRequestError
from chains.providers import (
    GetBlockProvider,
    NowNodesProvider,
    QuickNodeProvider,
    build_provider,
)


def make_response(status_code=200, body=None, reason="OK"):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = reason
    response.json.return_value = body
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


class TestProviderConstruction:
    """Test URL layout and chain support."""

    def test_quicknode_url_per_chain(self, session):
        provider = QuickNodeProvider(chain="bsc", api_key="k", timeout=5, session=session)
        assert provider.base_url == "https://api.quicknode.com/v1/bsc/mainnet"

    def test_nownodes_url_uses_network(self, session):
        provider = NowNodesProvider(
            chain="tron", network="testnet", timeout=5, session=session
        )
        assert provider.base_url == "https://testnet.nownodes.io"

    def test_unsupported_chain_rejected(self, session):
        """GetBlock does not serve tron."""
        with pytest.raises(ValueError):
            GetBlockProvider(chain="tron", timeout=5, session=session)

    def test_build_provider_by_name(self):
        provider = build_provider("getblock", "bitcoin", api_key="k", timeout=5)
        assert isinstance(provider, GetBlockProvider)
        assert provider.chain == "bitcoin"


class TestHttpTransport:
    """Test request plumbing and error mapping."""

    def test_bearer_auth_and_timeout(self, session):
        """API key is sent as a bearer token with the configured timeout."""
        session.request.return_value = make_response(body={"result": "0x10"})
        provider = NowNodesProvider(chain="ethereum", api_key="secret", timeout=7, session=session)

        assert provider.get_current_block_height() == 16

        _, kwargs = session.request.call_args
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["timeout"] == 7
        assert kwargs["json"]["method"] == "eth_blockNumber"

    def test_non_2xx_raises_provider_error(self, session):
        session.request.return_value = make_response(503, reason="Service Unavailable")
        provider = NowNodesProvider(chain="bitcoin", timeout=5, session=session)

        with pytest.raises(ProviderRequestError) as exc_info:
            provider.get_transactions("bc1q")

        assert exc_info.value.status_code == 503
        assert exc_info.value.provider == "nownodes"

    def test_network_error_raises_provider_error(self, session):
        session.request.side_effect = requests.Timeout("timed out")
        provider = QuickNodeProvider(chain="ethereum", timeout=5, session=session)

        with pytest.raises(ProviderRequestError):
            provider.get_current_block_height()

    def test_rpc_error_body_raises(self, session):
        session.request.return_value = make_response(
            body={"error": {"code": -32000, "message": "bad"}}
        )
        provider = QuickNodeProvider(chain="ethereum", timeout=5, session=session)

        with pytest.raises(ProviderRequestError):
            provider.broadcast_transaction("0xf86c")


class TestBalances:
    """Test balance unit conversion."""

    def test_btc_balance_in_satoshis(self, session):
        session.request.return_value = make_response(body={"balance": 150000000})
        provider = NowNodesProvider(chain="bitcoin", timeout=5, session=session)

        assert provider.get_balance("bc1q", "btc") == Decimal("1.5")
        args, _ = session.request.call_args
        assert args[1] == "https://mainnet.nownodes.io/btc/address/bc1q"

    def test_getblock_btc_uses_confirmed_field(self, session):
        session.request.return_value = make_response(body={"confirmed": 50000000})
        provider = GetBlockProvider(chain="bitcoin", timeout=5, session=session)

        assert provider.get_balance("bc1q", "btc") == Decimal("0.5")
        args, _ = session.request.call_args
        assert args[1] == "https://go.getblock.io/btc/bc1q/balance"

    def test_erc20_balance_uses_balance_of_call(self, session):
        # 2.5 USDT with 6 decimals
        session.request.return_value = make_response(body={"result": hex(2_500_000)})
        provider = QuickNodeProvider(chain="ethereum", timeout=5, session=session)

        assert provider.get_balance("0x" + "ab" * 20, "usdt_erc20") == Decimal("2.5")
        _, kwargs = session.request.call_args
        call = kwargs["json"]["params"][0]
        assert call["data"].startswith("0x70a08231")
        assert len(call["data"]) == 10 + 64

    def test_asset_on_other_chain_rejected(self, session):
        provider = QuickNodeProvider(chain="bsc", timeout=5, session=session)

        with pytest.raises(ProviderRequestError):
            provider.get_balance("0xabc", "eth")


class TestTransactions:
    """Test transaction list parsing."""

    def test_parses_transaction_fields(self, session):
        session.request.return_value = make_response(
            body={
                "transactions": [
                    {
                        "hash": "0xfeed",
                        "blockNumber": 1200,
                        "confirmations": 3,
                        "value": "101.0",
                        "from": "0xfrom",
                        "to": "0xto",
                        "timestamp": 1700000000,
                    }
                ]
            }
        )
        provider = NowNodesProvider(chain="ethereum", timeout=5, session=session)

        [tx] = provider.get_transactions("0xto")

        assert tx.txid == "0xfeed"
        assert tx.block_height == 1200
        assert tx.confirmations == 3
        assert tx.amount == Decimal("101.0")
        assert tx.to_address == "0xto"

    def test_missing_transactions_key_raises(self, session):
        session.request.return_value = make_response(body={"unexpected": True})
        provider = NowNodesProvider(chain="ethereum", timeout=5, session=session)

        with pytest.raises(ProviderRequestError):
            provider.get_transactions("0xto")
