from tvl_toolkit.utils.decimals import (
    handle_decimals,
    scale_down,
    scale_up,
    to_decimal_string,
)
from tvl_toolkit.utils.formatters import format_usd_value, humanize_number

__all__ = [
    "handle_decimals",
    "scale_down",
    "scale_up",
    "to_decimal_string",
    "format_usd_value",
    "humanize_number",
]
