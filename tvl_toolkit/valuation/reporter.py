"""Verbose per-token report."""

from typing import Iterable, Optional

from rich.console import Console

from tvl_toolkit.utils.formatters import console as default_console
from tvl_toolkit.utils.formatters import humanize_number
from tvl_toolkit.valuation.models import TokenValuation

SYMBOL_COLUMN_WIDTH = 25


def print_token_report(
    valuations: Iterable[TokenValuation], console: Optional[Console] = None
) -> None:
    """Print one line per token, largest USD value first."""
    console = console or default_console
    for valuation in sorted(
        valuations, key=lambda v: v.usd_amount, reverse=True
    ):
        console.print(
            valuation.symbol.ljust(SYMBOL_COLUMN_WIDTH),
            humanize_number(valuation.usd_amount),
            markup=False,
            highlight=False,
        )
