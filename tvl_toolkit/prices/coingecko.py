"""
CoinGecko price client for current and historical USD prices.

Both entry points share the same contract: they take a list of ids (CoinGecko
slugs or contract addresses), a URL template for the price bucket, a lock
factory used to throttle requests, and a retry budget. Failures never
propagate: a request that still fails after its retries is logged and its
ids are simply missing from the returned mapping.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from tvl_toolkit.shared.constants import COINGECKO_API_KEY, COINGECKO_API_URL
from tvl_toolkit.shared.exceptions import PriceAPIException
from tvl_toolkit.shared.logging import get_logger
from tvl_toolkit.shared.retry import HTTP_RETRY_CONFIG, retry_async_operation
from tvl_toolkit.shared.services.http_client import get_async_client

logger = get_logger(__name__)

TokenPrices = Dict[str, Dict[str, Any]]
GetCoingeckoLock = Callable[[], Awaitable[None]]

PRICE_RETRYABLE_EXCEPTIONS = (PriceAPIException, httpx.TransportError)


async def noop_lock() -> None:
    """Default lock: never waits."""
    return None


def _chunks(items: Sequence[str], size: int) -> List[List[str]]:
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def _closest_price(
    samples: Sequence[Sequence[float]], timestamp: int
) -> Optional[float]:
    """Pick the [ms, price] sample nearest to a unix timestamp."""
    if not samples:
        return None
    target_ms = timestamp * 1000
    closest = min(samples, key=lambda sample: abs(sample[0] - target_ms))
    return closest[1]


class CoinGeckoClient:
    """
    Thin async client over the CoinGecko REST API.

    Args:
        http_client: Optional httpx.AsyncClient (the shared client by default)
        base_url: API root used for current-price queries
        api_key: Optional demo API key sent as x-cg-demo-api-key
    """

    CHUNK_SIZE = 100  # ids per /simple request
    HISTORICAL_WINDOW = 2 * 3600  # seconds searched on each side of the timestamp

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = COINGECKO_API_URL,
        api_key: Optional[str] = COINGECKO_API_KEY,
    ):
        self._http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    @property
    def client(self) -> httpx.AsyncClient:
        return self._http_client or get_async_client()

    async def _get_json(self, url: str) -> Any:
        headers = {"x-cg-demo-api-key": self.api_key} if self.api_key else None
        response = await self.client.get(url, headers=headers)

        if response.status_code == 429 or response.status_code >= 500:
            raise PriceAPIException(
                f"CoinGecko returned {response.status_code} for {url}",
                status_code=response.status_code,
            )
        response.raise_for_status()
        return response.json()

    async def _fetch(
        self,
        url: str,
        get_coingecko_lock: GetCoingeckoLock,
        max_retries: int,
    ) -> Optional[Any]:
        async def attempt() -> Any:
            await get_coingecko_lock()
            return await self._get_json(url)

        try:
            return await retry_async_operation(
                attempt,
                max_attempts=max_retries,
                base_delay=HTTP_RETRY_CONFIG.base_delay,
                max_delay=HTTP_RETRY_CONFIG.max_delay,
                retryable_exceptions=PRICE_RETRYABLE_EXCEPTIONS,
                operation_name="coingecko_request",
            )
        except (httpx.HTTPError, PriceAPIException, ValueError) as e:
            logger.error(f"Giving up on CoinGecko request {url}: {e}")
            return None

    async def get_token_prices(
        self,
        ids: Sequence[str],
        url: str,
        known_prices: Optional[TokenPrices] = None,
        get_coingecko_lock: GetCoingeckoLock = noop_lock,
        max_retries: int = 3,
    ) -> TokenPrices:
        """
        Fetch current USD prices.

        Ids found in ``known_prices`` are answered from it without a request.
        The rest are queried in chunks of CHUNK_SIZE.

        Args:
            ids: CoinGecko ids or contract addresses
            url: Relative query prefix, e.g. "v3/simple/price?ids"
            known_prices: Prices the caller already has, keyed by id
            get_coingecko_lock: Awaited before every request attempt
            max_retries: Attempts per request

        Returns:
            Mapping of lower-cased id -> {"usd": price}
        """
        known_prices = known_prices or {}
        known_lower = {key.lower(): value for key, value in known_prices.items()}

        prices: TokenPrices = {}
        to_fetch: List[str] = []
        for token_id in ids:
            key = token_id.lower()
            if key in known_lower:
                prices[key] = known_lower[key]
            elif key not in to_fetch:
                to_fetch.append(key)

        if not to_fetch:
            return prices

        urls = [
            f"{self.base_url}/{url}={','.join(chunk)}&vs_currencies=usd"
            for chunk in _chunks(to_fetch, self.CHUNK_SIZE)
        ]
        responses = await asyncio.gather(
            *[
                self._fetch(chunk_url, get_coingecko_lock, max_retries)
                for chunk_url in urls
            ]
        )

        for data in responses:
            if not isinstance(data, dict):
                continue
            for key, entry in data.items():
                if isinstance(entry, dict) and "usd" in entry:
                    prices[key.lower()] = {"usd": entry["usd"]}

        return prices

    async def get_historical_token_prices(
        self,
        ids: Sequence[str],
        url: str,
        timestamp: int,
        get_coingecko_lock: GetCoingeckoLock = noop_lock,
        max_retries: int = 3,
    ) -> TokenPrices:
        """
        Fetch USD prices at a past unix timestamp.

        One market_chart/range request per id, searching HISTORICAL_WINDOW
        seconds around the timestamp and keeping the closest sample.

        Returns:
            Mapping of lower-cased id -> {"usd": price}
        """
        unique_ids = list(dict.fromkeys(token_id.lower() for token_id in ids))
        timestamp = int(timestamp)

        async def fetch_one(token_id: str) -> Optional[float]:
            range_url = (
                f"{url}/{token_id}/market_chart/range?vs_currency=usd"
                f"&from={timestamp - self.HISTORICAL_WINDOW}"
                f"&to={timestamp + self.HISTORICAL_WINDOW}"
            )
            data = await self._fetch(range_url, get_coingecko_lock, max_retries)
            if not isinstance(data, dict):
                return None
            return _closest_price(data.get("prices") or [], timestamp)

        results = await asyncio.gather(
            *[fetch_one(token_id) for token_id in unique_ids]
        )

        return {
            token_id: {"usd": price}
            for token_id, price in zip(unique_ids, results)
            if price is not None
        }


# Global instance
coingecko_client = CoinGeckoClient()
