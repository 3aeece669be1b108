from tvl_toolkit.valuation.models import ValuationResult
from tvl_toolkit.valuation.service import (
    ValuationService,
    compute_tvl,
    valuation_service,
)

__all__ = [
    "ValuationResult",
    "ValuationService",
    "compute_tvl",
    "valuation_service",
]
