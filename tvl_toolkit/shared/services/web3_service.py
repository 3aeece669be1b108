"""
Provider registry mapping chain names to Web3 connections.

Connections are built lazily from the chain configuration table the first
time a chain is requested. Callers (and tests) can swap in their own Web3
instance with set_provider.
"""

from typing import Dict, Optional

from web3 import Web3

from tvl_toolkit.shared.constants import CHAINS, DEFAULT_CHAIN


class Web3Service:
    """
    Holds one Web3 connection per chain name.

    Unknown chains resolve to None rather than raising; the multicall layer
    decides whether a missing provider is fatal.
    """

    def __init__(self):
        self._providers: Dict[str, Web3] = {}

    def _initialize_web3(self, chain: str, rpc_url: str) -> Web3:
        """Initialize Web3 instance with middleware if needed"""
        w3 = Web3(Web3.HTTPProvider(rpc_url))

        # Add POA middleware for non-mainnet chains
        if CHAINS[chain].chain_id != 1:
            from web3.middleware import geth_poa_middleware

            w3.middleware_onion.inject(geth_poa_middleware, layer=0)

        return w3

    def get_provider(self, chain: str = DEFAULT_CHAIN) -> Optional[Web3]:
        """Get or create the Web3 connection for a chain"""
        if chain not in self._providers:
            config = CHAINS.get(chain)
            if config is None:
                return None
            self._providers[chain] = self._initialize_web3(
                chain, config.rpc_url
            )
        return self._providers[chain]

    def set_provider(self, chain: str, w3: Web3) -> None:
        """Register (or replace) the Web3 connection for a chain"""
        self._providers[chain] = w3

    def reset(self) -> None:
        """Drop every cached connection"""
        self._providers = {}


# Global instance
web3_service = Web3Service()


def get_provider(chain: str = DEFAULT_CHAIN) -> Optional[Web3]:
    return web3_service.get_provider(chain)


def set_provider(chain: str, w3: Web3) -> None:
    web3_service.set_provider(chain, w3)
