"""
Decimal helpers for token balances.

Balances enter the toolkit as strings, ints, floats, Decimals or third-party
fixed-point objects exposing ``to_fixed()``. They are resolved once into a
positional decimal string so the rest of the pipeline only deals with text.
"""

from decimal import Context, Decimal, InvalidOperation
from typing import Any, Optional, Union

from tvl_toolkit.shared.exceptions import BalanceFormatException

NumericInput = Union[str, int, float, Decimal, Any]

# Wide enough for any uint256 amount at any decimals
_SCALE_CONTEXT = Context(prec=100)


def _format_decimal(value: Decimal) -> str:
    if not value.is_finite():
        return "NaN" if value.is_nan() else str(value)
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def to_decimal_string(value: NumericInput) -> str:
    """
    Render a balance value as a decimal string.

    Strings pass through untouched, so whatever the caller sent is what gets
    parsed at valuation time.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, Decimal):
        return _format_decimal(value)
    to_fixed = getattr(value, "to_fixed", None)
    if callable(to_fixed):
        return str(to_fixed())
    return str(value)


def parse_decimal(value: NumericInput) -> Decimal:
    """Parse a balance into a Decimal, raising BalanceFormatException."""
    try:
        return Decimal(to_decimal_string(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise BalanceFormatException(
            f"Cannot read balance {value!r} as a number"
        ) from e


def shift(value: Decimal, places: int) -> Decimal:
    """value × 10^places without rounding."""
    return value.scaleb(int(places), context=_SCALE_CONTEXT)


def scale_up(value: NumericInput, decimals: Optional[int]) -> str:
    """value × 10^decimals as a decimal string; unknown decimals give NaN."""
    if decimals is None:
        return "NaN"
    return _format_decimal(shift(parse_decimal(value), decimals))


def scale_down(value: NumericInput, decimals: int) -> str:
    """value / 10^decimals as a decimal string."""
    return _format_decimal(shift(parse_decimal(value), -int(decimals)))


def handle_decimals(num: int, decimals: Optional[int] = None) -> str:
    """Integer-divide a raw on-chain amount by 10^decimals."""
    if decimals is None:
        return str(num)
    return str(int(num) // 10 ** int(decimals))
