"""
Per-chain fetch orchestration for token metadata and prices.

Every chain bucket is fetched concurrently. A bucket whose collaborator call
raises is logged, recorded and treated as empty, so the valuation step sees
the same thing it would see for a token the chain does not know.
"""

import asyncio
from typing import Any, Dict, List, Union

from tvl_toolkit.prices.coingecko import GetCoingeckoLock, TokenPrices
from tvl_toolkit.shared.constants import (
    GENERIC_BUCKET,
    SUPPORTED_CHAINS,
    PriceUrls,
)
from tvl_toolkit.shared.logging import get_logger
from tvl_toolkit.shared.results import ErrorSeverity, ProcessingError
from tvl_toolkit.valuation.models import ChainBuckets, ChainMetadata
from tvl_toolkit.valuation.normalizer import MultiCall

logger = get_logger(__name__)

Timestamp = Union[int, str]  # unix seconds or "now"


async def token_multicall(
    multicall: MultiCall, addresses: List[str], abi: str, chain: str
) -> List[Dict[str, Any]]:
    """Run one ERC20 getter across addresses, keeping successful calls only."""
    if not addresses:
        return []
    response = await multicall(
        abi=abi,
        calls=[{"target": address, "params": []} for address in addresses],
        chain=chain,
    )
    return [call for call in response["output"] if call["success"]]


def _settled(
    result: Any,
    default: Any,
    source: str,
    context: Dict[str, Any],
    errors: List[ProcessingError],
) -> Any:
    if not isinstance(result, Exception):
        return result
    logger.error(f"{source} failed for {context}: {result}")
    errors.append(
        ProcessingError(
            source=source,
            message=f"{source} failed: {result}",
            severity=ErrorSeverity.ERROR,
            context=context,
            exception=result,
        )
    )
    return default


async def get_chain_symbols_and_decimals(
    buckets: ChainBuckets,
    multicall: MultiCall,
    errors: List[ProcessingError],
) -> Dict[str, ChainMetadata]:
    """Fetch symbol() and decimals() for every chain bucket concurrently."""
    chains = list(SUPPORTED_CHAINS)
    tasks = []
    for chain in chains:
        addresses = buckets.get(chain, [])
        tasks.append(token_multicall(multicall, addresses, "erc20:symbol", chain))
        tasks.append(
            token_multicall(multicall, addresses, "erc20:decimals", chain)
        )

    results = await asyncio.gather(*tasks, return_exceptions=True)

    metadata: Dict[str, ChainMetadata] = {}
    for index, chain in enumerate(chains):
        symbols, decimals = results[2 * index], results[2 * index + 1]
        metadata[chain] = ChainMetadata(
            symbols=_settled(
                symbols, [], "metadata", {"chain": chain, "abi": "symbol"}, errors
            ),
            decimals=_settled(
                decimals,
                [],
                "metadata",
                {"chain": chain, "abi": "decimals"},
                errors,
            ),
        )
    return metadata


async def get_chain_prices(
    buckets: ChainBuckets,
    timestamp: Timestamp,
    known_token_prices: TokenPrices,
    get_coingecko_lock: GetCoingeckoLock,
    coingecko_max_retries: int,
    price_client: Any,
    errors: List[ProcessingError],
) -> Dict[str, TokenPrices]:
    """
    Fetch USD prices for every chain bucket and the generic bucket.

    ``timestamp == "now"`` selects current prices; anything else is read as a
    unix timestamp for historical prices. Retries and throttling belong to
    the price client.
    """
    bucket_names = list(SUPPORTED_CHAINS) + [GENERIC_BUCKET]

    async def fetch_bucket(bucket: str) -> TokenPrices:
        ids = buckets.get(bucket, [])
        if not ids:
            return {}
        if timestamp == "now":
            return await price_client.get_token_prices(
                ids,
                PriceUrls.current(bucket),
                known_token_prices,
                get_coingecko_lock,
                coingecko_max_retries,
            )
        return await price_client.get_historical_token_prices(
            ids,
            PriceUrls.historical(bucket),
            int(timestamp),
            get_coingecko_lock,
            coingecko_max_retries,
        )

    results = await asyncio.gather(
        *[fetch_bucket(bucket) for bucket in bucket_names],
        return_exceptions=True,
    )

    return {
        bucket: _settled(result, {}, "prices", {"bucket": bucket}, errors)
        for bucket, result in zip(bucket_names, results)
    }
