from tvl_toolkit.prices.coingecko import (
    CoinGeckoClient,
    coingecko_client,
    noop_lock,
)

__all__ = ["CoinGeckoClient", "coingecko_client", "noop_lock"]
