"""All constants for the project"""

import os
from dataclasses import dataclass
from typing import Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()

NATIVE_ASSET_ADDRESS = "0x0000000000000000000000000000000000000000"
NATIVE_ASSET_ID = "ethereum"  # CoinGecko id the native sentinel maps to
NATIVE_ASSET_DECIMALS = 18

DEFAULT_CHAIN = "ethereum"
GENERIC_BUCKET = "coingecko"  # Free-form ids priced through /simple/price

COINGECKO_API_URL = os.getenv(
    "COINGECKO_API_URL", "https://api.coingecko.com/api"
)
COINGECKO_API_KEY = os.getenv("COINGECKO_API_KEY") or None

# Multicall3 is deployed at the same address on every supported chain
MULTICALL3_ADDRESS = os.getenv(
    "MULTICALL3_ADDRESS", "0xcA11bde05977b3631167028862bE2a173976CA11"
)


@dataclass(frozen=True)
class ChainConfig:
    """Static description of a network the toolkit can talk to."""

    name: str
    chain_id: int
    rpc_env: str
    default_rpc: str
    coingecko_platform: Optional[str] = None  # None: not priced by contract
    is_default: bool = False

    @property
    def rpc_url(self) -> str:
        return os.getenv(self.rpc_env) or self.default_rpc


CHAINS: Dict[str, ChainConfig] = {
    "ethereum": ChainConfig(
        "ethereum",
        1,
        "ETHEREUM_RPC",
        "https://ethereum-rpc.publicnode.com",
        coingecko_platform="ethereum",
        is_default=True,
    ),
    "bsc": ChainConfig(
        "bsc",
        56,
        "BSC_RPC",
        "https://bsc-dataseed.binance.org/",
        coingecko_platform="binance-smart-chain",
    ),
    "polygon": ChainConfig(
        "polygon",
        137,
        "POLYGON_RPC",
        "https://polygon-rpc.com/",
        coingecko_platform="polygon-pos",
    ),
    "avax": ChainConfig(
        "avax",
        43114,
        "AVAX_RPC",
        "https://api.avax.network/ext/bc/C/rpc",
        coingecko_platform="avalanche",
    ),
    "heco": ChainConfig(
        "heco", 128, "HECO_RPC", "https://http-mainnet.hecochain.com"
    ),
    "fantom": ChainConfig(
        "fantom", 250, "FANTOM_RPC", "https://rpcapi.fantom.network"
    ),
    "rsk": ChainConfig("rsk", 30, "RSK_RPC", "https://public-node.rsk.co"),
    "tomochain": ChainConfig(
        "tomochain", 88, "TOMOCHAIN_RPC", "https://rpc.tomochain.com"
    ),
    "xdai": ChainConfig(
        "xdai", 100, "XDAI_RPC", "https://rpc.gnosischain.com"
    ),
    "wan": ChainConfig(
        "wan", 888, "WAN_RPC", "https://gwan-ssl.wandevs.org:56891"
    ),
    "harmony": ChainConfig(
        "harmony", 1666600000, "HARMONY_RPC", "https://api.s0.t.hmny.io"
    ),
}

# Chains whose balances are valued: prefixed "<chain>:0x..." except the default
SUPPORTED_CHAINS: List[str] = [
    name for name, config in CHAINS.items() if config.coingecko_platform
]


class PriceUrls:
    """CoinGecko endpoint templates per price bucket."""

    @staticmethod
    def current(bucket: str) -> str:
        """Relative query prefix; the price client appends '=<ids>'."""
        if bucket == GENERIC_BUCKET:
            return "v3/simple/price?ids"
        platform = _platform(bucket)
        return f"v3/simple/token_price/{platform}?contract_addresses"

    @staticmethod
    def historical(bucket: str) -> str:
        """Absolute base; the price client appends '/<id>/market_chart/range'."""
        if bucket == GENERIC_BUCKET:
            return f"{COINGECKO_API_URL}/v3/coins"
        platform = _platform(bucket)
        return f"{COINGECKO_API_URL}/v3/coins/{platform}/contract"


def _platform(chain: str) -> str:
    config = CHAINS.get(chain)
    if config is None or config.coingecko_platform is None:
        raise ValueError(f"Chain {chain} has no CoinGecko platform")
    return config.coingecko_platform
