"""
Unit tests for the provider registry and the shared HTTP client.
"""

import asyncio
import logging
from unittest.mock import MagicMock

import pytest

from tvl_toolkit.shared.constants import CHAINS, SUPPORTED_CHAINS, PriceUrls
from tvl_toolkit.shared.logging import get_logger
from tvl_toolkit.shared.services import http_client
from tvl_toolkit.shared.services.web3_service import Web3Service


class TestWeb3Service:
    def test_builds_provider_lazily(self, monkeypatch):
        monkeypatch.setenv("BSC_RPC", "http://localhost:8545")
        service = Web3Service()

        w3 = service.get_provider("bsc")

        assert w3 is service.get_provider("bsc")
        assert w3.provider.endpoint_uri == "http://localhost:8545"

    def test_unknown_chain(self):
        assert Web3Service().get_provider("solana") is None

    def test_set_provider_and_reset(self):
        service = Web3Service()
        w3 = MagicMock()

        service.set_provider("ethereum", w3)
        assert service.get_provider("ethereum") is w3

        service.reset()
        assert service.get_provider("ethereum") is not w3


class TestChainConfig:
    def test_supported_chains(self):
        assert SUPPORTED_CHAINS == ["ethereum", "bsc", "polygon", "avax"]

    def test_rpc_override(self, monkeypatch):
        monkeypatch.setenv("POLYGON_RPC", "http://polygon.local")
        assert CHAINS["polygon"].rpc_url == "http://polygon.local"

    def test_rpc_default(self, monkeypatch):
        monkeypatch.delenv("AVAX_RPC", raising=False)
        assert CHAINS["avax"].rpc_url == CHAINS["avax"].default_rpc

    def test_price_urls(self):
        assert PriceUrls.current("bsc") == (
            "v3/simple/token_price/binance-smart-chain?contract_addresses"
        )
        assert PriceUrls.historical("avax").endswith(
            "/v3/coins/avalanche/contract"
        )

    def test_price_urls_reject_unpriced_chain(self):
        with pytest.raises(ValueError):
            PriceUrls.current("fantom")


class TestHttpClient:
    @pytest.mark.asyncio
    async def test_shared_client_is_reused_and_recreated(self):
        client = http_client.get_async_client()
        assert http_client.get_async_client() is client
        assert client.headers["User-Agent"] == http_client.USER_AGENT

        await http_client.aclose_async_client()

        assert client.is_closed
        assert http_client.get_async_client() is not client
        await http_client.aclose_async_client()

    def test_each_event_loop_gets_its_own_client(self):
        async def current_client():
            return http_client.get_async_client()

        first = asyncio.run(current_client())
        second = asyncio.run(current_client())

        assert second is not first
        assert not second.is_closed

        # Closing from a different loop only forgets the client
        asyncio.run(http_client.aclose_async_client())
        assert http_client._async_client is None


class TestGetLogger:
    def test_module_loggers_share_the_package_handler(self):
        package = get_logger()
        first = get_logger("tvl_toolkit.valuation.service")
        second = get_logger("tvl_toolkit.prices.coingecko")
        get_logger("tvl_toolkit.valuation.service")

        assert package.name == "tvl_toolkit"
        assert len(package.handlers) == 1
        assert first.handlers == [] and second.handlers == []
        assert first.propagate and second.propagate

    def test_foreign_names_are_nested(self):
        assert get_logger("scripts.backfill").name == "tvl_toolkit.scripts.backfill"

    def test_records_reach_caplog(self, caplog):
        with caplog.at_level(logging.WARNING):
            get_logger("tvl_toolkit.test").warning("price missing")

        assert "price missing" in caplog.text
