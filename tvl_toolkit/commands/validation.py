import json
from pathlib import Path
from typing import Any, Dict, List, Union

from eth_utils import is_address

from tvl_toolkit.valuation.models import RawBalances


def validate_timestamp(value: str) -> Union[int, str]:
    """Validate a --timestamp value: "now" or a positive unix timestamp"""
    if value.lower() == "now":
        return "now"
    try:
        timestamp = int(value)
    except ValueError:
        raise ValueError(
            f"Invalid timestamp: {value}. Must be 'now' or a unix timestamp"
        )
    if timestamp <= 0:
        raise ValueError(f"Invalid timestamp: {value}. Must be positive")
    return timestamp


def validate_balance_entries(entries: List[Dict[str, Any]]) -> None:
    """Validate list-form balances: every entry needs an address and balance"""
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"Entry {index} must be an object")
        if "address" not in entry or "balance" not in entry:
            raise ValueError(
                f"Entry {index} must have 'address' and 'balance' fields"
            )
        if not is_address(str(entry["address"]).lower()):
            raise ValueError(
                f"Entry {index}: {entry['address']} is not a valid address"
            )


def load_balances(file_path: str) -> RawBalances:
    """Load a balances JSON file in map form or list form"""
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Balances file not found: {file_path}")

    with open(path, "r") as file:
        data = json.load(file)

    if isinstance(data, dict):
        return data
    if isinstance(data, list):
        validate_balance_entries(data)
        return data
    raise ValueError(
        "Balances file must contain an object (identifier -> amount) "
        "or a list of {address, balance} entries"
    )
