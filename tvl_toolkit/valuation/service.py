"""
ValuationService - USD valuation of multichain token balances

This service handles:
1. Normalizing map-form and list-form balances into one canonical map
2. Bucketing identifiers by chain (ethereum, bsc, polygon, avax, coingecko ids)
3. Fetching symbol/decimals per chain through multicall
4. Fetching current or historical USD prices per bucket
5. Valuing every identifier independently and summing by symbol

Failure policy:
- Unknown decimals -> amount 0, token still listed
- Unknown symbol -> "UNKNOWN (<identifier>)"
- Unknown price -> price 0, token amount still recorded
- Any other error on one identifier -> "ERROR <identifier>" with value 0

No single token can abort the valuation of the others.
"""

import asyncio
import math
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from rich.console import Console

from tvl_toolkit.contracts.multicall import multi_call
from tvl_toolkit.prices.coingecko import (
    GetCoingeckoLock,
    TokenPrices,
    coingecko_client,
    noop_lock,
)
from tvl_toolkit.shared.constants import GENERIC_BUCKET
from tvl_toolkit.shared.logging import get_logger
from tvl_toolkit.shared.results import ErrorSeverity, ProcessingError
from tvl_toolkit.utils.decimals import parse_decimal, shift
from tvl_toolkit.valuation.classifier import (
    bucket_identifiers,
    classify_identifier,
)
from tvl_toolkit.valuation.fetchers import (
    Timestamp,
    get_chain_prices,
    get_chain_symbols_and_decimals,
)
from tvl_toolkit.valuation.models import (
    ChainAddress,
    ChainMetadata,
    RawBalances,
    TokenValuation,
    ValuationResult,
)
from tvl_toolkit.valuation.normalizer import (
    MultiCall,
    convert_balance_list,
    normalize_balances,
)
from tvl_toolkit.valuation.reporter import print_token_report

logger = get_logger(__name__)


class ValuationService:
    """
    Computes the USD value of a set of token balances.

    Collaborators are injectable so the engine can run against any multicall
    implementation or price source.

    Args:
        multicall: Async callable with the multi_call signature
        price_client: Object exposing get_token_prices and
            get_historical_token_prices
        console: Rich console for the verbose report
    """

    def __init__(
        self,
        multicall: MultiCall = multi_call,
        price_client: Any = None,
        console: Optional[Console] = None,
    ):
        self.multicall = multicall
        self.price_client = price_client or coingecko_client
        self.console = console

    async def valuate(
        self,
        raw_balances: RawBalances,
        timestamp: Timestamp = "now",
        verbose: bool = False,
        known_token_prices: Optional[TokenPrices] = None,
        get_coingecko_lock: Optional[GetCoingeckoLock] = None,
        coingecko_max_retries: int = 3,
    ) -> ValuationResult:
        """
        Value a portfolio.

        Args:
            raw_balances: identifier -> raw amount, or [{"address", "balance"}]
            timestamp: "now" or a unix timestamp for historical prices
            verbose: Log degraded tokens and print a per-token report
            known_token_prices: Prices to reuse instead of querying
            get_coingecko_lock: Awaited before every price request
            coingecko_max_retries: Attempts per price request

        Returns:
            ValuationResult with usd_tvl, per-symbol balances and the list
            of errors/warnings encountered
        """
        errors: List[ProcessingError] = []

        if isinstance(raw_balances, Mapping):
            balance_map = raw_balances
        else:
            balance_map = await convert_balance_list(
                list(raw_balances), self.multicall, errors
            )

        balances = normalize_balances(balance_map)
        buckets = bucket_identifiers(balances.keys())

        # Every bucket must settle before any token is valued
        metadata, prices = await asyncio.gather(
            get_chain_symbols_and_decimals(buckets, self.multicall, errors),
            get_chain_prices(
                buckets,
                timestamp,
                known_token_prices or {},
                get_coingecko_lock or noop_lock,
                coingecko_max_retries,
                self.price_client,
                errors,
            ),
        )

        outcomes = await asyncio.gather(
            *[
                self._value_token(
                    identifier, balance, metadata, prices, verbose
                )
                for identifier, balance in balances.items()
            ]
        )
        valuations = [valuation for valuation, _ in outcomes]
        for _, token_errors in outcomes:
            errors.extend(token_errors)

        if verbose:
            print_token_report(valuations, self.console)

        return self._aggregate(valuations, errors)

    async def _value_token(
        self,
        identifier: str,
        balance: str,
        metadata: Dict[str, ChainMetadata],
        prices: Dict[str, TokenPrices],
        verbose: bool,
    ) -> Tuple[TokenValuation, List[ProcessingError]]:
        warnings: List[ProcessingError] = []

        def warn(message: str, symbol: str) -> None:
            if verbose:
                logger.warning(message)
            warnings.append(
                ProcessingError(
                    source="valuation",
                    message=message,
                    severity=ErrorSeverity.WARNING,
                    context={"identifier": identifier, "symbol": symbol},
                )
            )

        try:
            classification = classify_identifier(identifier)

            if isinstance(classification, ChainAddress):
                chain_metadata = metadata[classification.chain]
                address = classification.address

                symbol = chain_metadata.symbol_of(address)
                if symbol is None:
                    symbol = f"UNKNOWN ({identifier})"

                decimals = chain_metadata.decimals_of(address)
                if decimals is None:
                    warn(
                        f"Couldn't query decimals() for token {symbol} "
                        f"({identifier}) so we'll ignore and assume its "
                        f"amount is 0",
                        symbol,
                    )
                    amount = Decimal(0)
                else:
                    amount = shift(parse_decimal(balance), -int(decimals))

                price = prices[classification.chain].get(address.lower(), {})
            else:
                symbol = classification.id
                amount = parse_decimal(balance)
                price = prices[GENERIC_BUCKET].get(identifier.lower(), {})

            # List-form entries with unknown decimals arrive as NaN
            if amount.is_nan():
                warn(
                    f"Balance of {symbol} ({identifier}) could not be "
                    f"scaled, assuming its amount is 0",
                    symbol,
                )
                amount = Decimal(0)

            usd_price = price.get("usd")
            if usd_price is None:
                warn(
                    f"Couldn't find the price of token at {identifier}, "
                    f"assuming a price of 0 for it...",
                    symbol,
                )
                usd_price = 0

            token_amount = float(amount)
            usd_amount = token_amount * float(usd_price)
            return (
                TokenValuation(identifier, symbol, token_amount, usd_amount),
                warnings,
            )

        except Exception as e:
            logger.error(
                f"Error on token {identifier}, we'll just assume its "
                f"price is 0: {e}"
            )
            warnings.append(
                ProcessingError(
                    source="valuation",
                    message=f"Error on token {identifier}: {e}",
                    severity=ErrorSeverity.ERROR,
                    context={"identifier": identifier},
                    exception=e,
                )
            )
            return (
                TokenValuation(identifier, f"ERROR {identifier}", 0.0, 0.0),
                warnings,
            )

    @staticmethod
    def _aggregate(
        valuations: List[TokenValuation], errors: List[ProcessingError]
    ) -> ValuationResult:
        """Sum per-token results by symbol once every task has settled."""
        result = ValuationResult(errors=errors)
        for valuation in valuations:
            symbol = valuation.symbol
            result.token_balances[symbol] = (
                result.token_balances.get(symbol, 0.0) + valuation.amount
            )
            result.usd_token_balances[symbol] = (
                result.usd_token_balances.get(symbol, 0.0)
                + valuation.usd_amount
            )
        result.usd_tvl = math.fsum(v.usd_amount for v in valuations)
        return result


# Global instance
valuation_service = ValuationService()


async def compute_tvl(
    raw_balances: RawBalances,
    timestamp: Timestamp = "now",
    verbose: bool = False,
    known_token_prices: Optional[TokenPrices] = None,
    get_coingecko_lock: Optional[GetCoingeckoLock] = None,
    coingecko_max_retries: int = 3,
) -> ValuationResult:
    """Value a portfolio with the default multicall and CoinGecko client."""
    return await valuation_service.valuate(
        raw_balances,
        timestamp,
        verbose,
        known_token_prices,
        get_coingecko_lock,
        coingecko_max_retries,
    )
