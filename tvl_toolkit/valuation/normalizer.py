"""
Input normalization for raw balances.

Two shapes are accepted:
- map form: identifier -> amount (raw on-chain units for addresses)
- list form: [{"address", "balance"}] with human-scaled balances

Both end up as a map of identifier -> decimal string.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from tvl_toolkit.shared.constants import (
    DEFAULT_CHAIN,
    NATIVE_ASSET_ADDRESS,
    NATIVE_ASSET_DECIMALS,
    NATIVE_ASSET_ID,
)
from tvl_toolkit.shared.exceptions import BalanceFormatException
from tvl_toolkit.shared.logging import get_logger
from tvl_toolkit.shared.results import ErrorSeverity, ProcessingError
from tvl_toolkit.utils.decimals import scale_down, scale_up, to_decimal_string
from tvl_toolkit.valuation.models import (
    BalanceEntry,
    BalanceMap,
    NormalizedBalances,
)

logger = get_logger(__name__)

MultiCall = Callable[..., Awaitable[Dict[str, List[Dict[str, Any]]]]]


def normalize_balances(balances: BalanceMap) -> NormalizedBalances:
    """
    Normalize a map-form balance set.

    The native sentinel address becomes the "ethereum" id with its amount
    divided by 10^18. Every value is rendered as a decimal string; values
    that cannot be read are kept verbatim and fail later, per token.
    """
    normalized: NormalizedBalances = {}
    for identifier, value in balances.items():
        balance = to_decimal_string(value)
        if identifier == NATIVE_ASSET_ADDRESS:
            identifier = NATIVE_ASSET_ID
            try:
                balance = scale_down(balance, NATIVE_ASSET_DECIMALS)
            except BalanceFormatException:
                pass
        normalized[identifier] = balance
    return normalized


async def convert_balance_list(
    entries: Sequence[BalanceEntry],
    multicall: MultiCall,
    errors: Optional[List[ProcessingError]] = None,
) -> Dict[str, str]:
    """
    Convert list-form balances into raw-unit map form.

    One decimals() multicall on the default chain covers every entry. An
    entry whose lookup failed uses 18 decimals for the native sentinel and
    "NaN" otherwise, which the valuation step reports and counts as zero.
    If the whole batch fails, every entry is treated as a failed lookup.
    """
    if errors is None:
        errors = []
    if not entries:
        return {}

    calls = [{"target": entry["address"], "params": []} for entry in entries]
    try:
        response = await multicall(
            abi="erc20:decimals", calls=calls, chain=DEFAULT_CHAIN
        )
        outputs = response["output"]
    except Exception as e:
        logger.error(f"Batched decimals lookup failed: {e}")
        errors.append(
            ProcessingError(
                source="normalizer",
                message=f"Batched decimals lookup failed: {e}",
                severity=ErrorSeverity.ERROR,
                context={"entries": len(entries)},
                exception=e,
            )
        )
        outputs = []

    balances: Dict[str, str] = {}
    for index, entry in enumerate(entries):
        address = entry["address"]
        call = outputs[index] if index < len(outputs) else None

        if call is not None and call.get("success"):
            decimals = int(call["output"])
        elif address == NATIVE_ASSET_ADDRESS:
            decimals = NATIVE_ASSET_DECIMALS
        else:
            decimals = None

        try:
            balances[address] = scale_up(entry["balance"], decimals)
        except BalanceFormatException:
            balances[address] = "NaN"

    return balances
