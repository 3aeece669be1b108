"""
Type definitions for portfolio valuation.
"""

from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    TypedDict,
    Union,
)

from tvl_toolkit.shared.results import ProcessingError
from tvl_toolkit.utils.decimals import NumericInput

# =============================================================================
# INPUT TYPES
# =============================================================================


class BalanceEntry(TypedDict):
    """List-form balance: human-scaled amount of the token at ``address``."""

    address: str
    balance: Union[str, int, float]


BalanceMap = Mapping[str, NumericInput]
RawBalances = Union[BalanceMap, Sequence[BalanceEntry]]

# Identifier -> decimal string, one entry per input identifier
NormalizedBalances = Dict[str, str]

# Chain name (or "coingecko") -> addresses / ids
ChainBuckets = Dict[str, List[str]]


# =============================================================================
# CLASSIFICATION
# =============================================================================


@dataclass(frozen=True)
class ChainAddress:
    """A token contract address on a known chain, prefix already stripped."""

    chain: str
    address: str


@dataclass(frozen=True)
class GenericId:
    """A free-form id priced through the generic CoinGecko endpoint."""

    id: str


Classification = Union[ChainAddress, GenericId]


# =============================================================================
# FETCHED DATA
# =============================================================================


@dataclass
class ChainMetadata:
    """
    Successful symbol() and decimals() calls for one chain bucket.

    Each list holds multicall entries shaped like
    {"input": {"target": ...}, "output": ..., "success": True}.
    """

    symbols: List[Dict[str, Any]] = field(default_factory=list)
    decimals: List[Dict[str, Any]] = field(default_factory=list)

    @staticmethod
    def _find(calls: List[Dict[str, Any]], address: str) -> Optional[Any]:
        for call in calls:
            if call["input"]["target"] == address:
                return call["output"]
        return None

    def symbol_of(self, address: str) -> Optional[str]:
        return self._find(self.symbols, address)

    def decimals_of(self, address: str) -> Optional[int]:
        return self._find(self.decimals, address)


# =============================================================================
# RESULTS
# =============================================================================


@dataclass
class TokenValuation:
    """Outcome of valuing a single identifier."""

    identifier: str
    symbol: str
    amount: float
    usd_amount: float


@dataclass
class ValuationResult:
    """
    Aggregate portfolio value.

    Balances are keyed by resolved symbol; identifiers sharing a symbol are
    summed. ``errors`` lists every value that was assumed to be zero.
    """

    usd_tvl: float = 0.0
    usd_token_balances: Dict[str, float] = field(default_factory=dict)
    token_balances: Dict[str, float] = field(default_factory=dict)
    errors: List[ProcessingError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "usd_tvl": self.usd_tvl,
            "usd_token_balances": dict(self.usd_token_balances),
            "token_balances": dict(self.token_balances),
        }
