"""Shared command helpers and utilities."""

import sys
from typing import Callable, Optional

from rich import print as rprint

from tvl_toolkit.shared.exceptions import (
    BalanceFormatException,
    ConfigurationException,
    NonRetryableException,
)

# First match wins, so subclasses come before their bases
_ERROR_LABELS = (
    (FileNotFoundError, "File not found"),
    (ConfigurationException, "Configuration error"),
    (BalanceFormatException, "Invalid balance"),
    (NonRetryableException, "Error"),
    (ValueError, "Invalid input"),
)


def error_label(error: Exception) -> str:
    for exc_type, label in _ERROR_LABELS:
        if isinstance(error, exc_type):
            return label
    return "Unexpected error"


def handle_command_error(
    error: Exception, show_usage_fn: Optional[Callable[[], None]] = None
) -> None:
    """
    Report a command failure and exit with status 1.

    Args:
        error: The exception that stopped the command
        show_usage_fn: Optional function to display usage instructions
    """
    rprint(f"[red]{error_label(error)}:[/red] {error}")

    if show_usage_fn:
        show_usage_fn()

    sys.exit(1)
