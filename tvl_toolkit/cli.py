#!/usr/bin/env python3
"""
Unified CLI for the TVL Toolkit.

Examples:
  - Current value of a map-form balances file
    tvl-toolkit compute --balances balances.json

  - Historical value with a per-token report
    tvl-toolkit compute --balances balances.json --timestamp 1700000000 --verbose

  - Save the result
    tvl-toolkit compute --balances balances.json --output tvl.json
"""

import argparse
import asyncio
from typing import List, Optional

from rich.table import Table

from tvl_toolkit.commands.helpers import handle_command_error
from tvl_toolkit.commands.validation import load_balances, validate_timestamp
from tvl_toolkit.shared.exceptions import NonRetryableException
from tvl_toolkit.shared.results import ErrorSeverity, count_by_severity
from tvl_toolkit.shared.services.http_client import aclose_async_client
from tvl_toolkit.utils.formatters import (
    console,
    format_usd_value,
    humanize_number,
    save_json_output,
)
from tvl_toolkit.valuation import ValuationResult, compute_tvl


def _render_result(result: ValuationResult) -> None:
    table = Table(
        show_header=True,
        header_style="bold cyan",
        show_lines=False,
        pad_edge=False,
        box=None,
    )
    table.add_column("Symbol", width=40)
    table.add_column("Amount", justify="right")
    table.add_column("USD", justify="right")

    for symbol, usd_amount in sorted(
        result.usd_token_balances.items(), key=lambda kv: kv[1], reverse=True
    ):
        table.add_row(
            symbol,
            humanize_number(result.token_balances.get(symbol, 0.0)),
            format_usd_value(usd_amount),
        )

    console.print(table)
    console.print(
        f"\n[bold]TVL:[/bold] {format_usd_value(result.usd_tvl)} "
        f"({humanize_number(result.usd_tvl)})"
    )

    warnings = count_by_severity(result.errors, ErrorSeverity.WARNING)
    errors = count_by_severity(result.errors, ErrorSeverity.ERROR)
    if warnings or errors:
        console.print(
            f"[yellow]{warnings} warning(s), {errors} error(s); "
            f"affected tokens were valued at 0[/yellow]"
        )


def cmd_compute(args: argparse.Namespace) -> None:
    try:
        balances = load_balances(args.balances)
        timestamp = validate_timestamp(args.timestamp)
    except (ValueError, FileNotFoundError, NonRetryableException) as e:
        handle_command_error(e)
        return

    async def run() -> ValuationResult:
        try:
            return await compute_tvl(
                balances,
                timestamp,
                verbose=args.verbose,
                coingecko_max_retries=args.max_retries,
            )
        finally:
            await aclose_async_client()

    result = asyncio.run(run())
    _render_result(result)

    if args.output:
        out = result.to_dict()
        out["timestamp"] = timestamp
        out["errors"] = [e.to_dict() for e in result.errors]
        save_json_output(out, args.output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tvl-toolkit",
        description="USD valuation of token balances across EVM chains",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # compute
    p_compute = sub.add_parser("compute", help="Compute the USD value of balances")
    p_compute.add_argument(
        "--balances",
        type=str,
        required=True,
        help="JSON file: {identifier: amount} or [{address, balance}]",
    )
    p_compute.add_argument(
        "--timestamp",
        type=str,
        default="now",
        help="'now' or a unix timestamp for historical prices",
    )
    p_compute.add_argument(
        "--verbose", action="store_true", help="Print a per-token report"
    )
    p_compute.add_argument(
        "--max-retries",
        type=int,
        default=3,
        help="Attempts per price request",
    )
    p_compute.add_argument("--output", type=str, help="Output filename")
    p_compute.set_defaults(func=cmd_compute)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except NonRetryableException as e:
        handle_command_error(e, parser.print_usage)
    except Exception as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise


if __name__ == "__main__":
    main()
