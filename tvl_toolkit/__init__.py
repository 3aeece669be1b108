"""TVL Toolkit - USD valuation of token balances across EVM chains."""

__version__ = "1.0.0"

from .valuation import ValuationResult, ValuationService, compute_tvl

__all__ = ["ValuationResult", "ValuationService", "compute_tvl"]
