"""Shared formatting and file utilities for commands."""

import json
import math
from pathlib import Path
from typing import Any, Dict

from rich.console import Console

# Shared console instance
console = Console()

_SUFFIXES = ["", "k", "M", "B", "T"]


def humanize_number(num: float) -> str:
    """
    Render a number with a unit suffix.

    Args:
        num: Value to render

    Returns:
        String like "950.00", "12.35 k", "3.20 M"

    Example:
        >>> humanize_number(1234567)
        '1.23 M'
    """
    if num is None or math.isnan(num):
        return "NaN"
    if math.isinf(num):
        return "-inf" if num < 0 else "inf"
    if abs(num) < 1000:
        return f"{num:.2f}"

    magnitude = min(int(math.log10(abs(num)) // 3), len(_SUFFIXES) - 1)
    scaled = num / 10 ** (3 * magnitude)
    return f"{scaled:.2f} {_SUFFIXES[magnitude]}"


def format_usd_value(value: float) -> str:
    """
    Format USD value for display.

    Args:
        value: USD value

    Returns:
        Formatted string
    """
    if value == 0:
        return "$0"
    if abs(value) < 0.01:
        return f"${value:.6f}"
    return f"${value:,.2f}"


def save_json_output(
    data: Dict[str, Any],
    filename: str,
    output_dir: str = "output",
    print_path: bool = True,
) -> str:
    """
    Save data to a JSON file with automatic directory creation.

    Args:
        data: Data to save
        filename: Output filename (can include subdirectories)
        output_dir: Base output directory (default: 'output')
        print_path: Whether to print the saved file path

    Returns:
        Full path to saved file
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    filepath = output_path / filename
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w") as f:
        json.dump(data, f, indent=2)

    if print_path:
        console.print(f"[cyan]Data saved to:[/cyan] {filepath}")

    return str(filepath)
