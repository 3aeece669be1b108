"""
Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests.
"""

import io
from typing import Any, Dict, Tuple

import pytest
from rich.console import Console

from tests.fakes import BSC_USDC, DAI, POLYGON_USDC, USDC


@pytest.fixture
def quiet_console() -> Console:
    """Console writing into a buffer instead of stdout."""
    return Console(file=io.StringIO(), width=120)


@pytest.fixture
def erc20_metadata() -> Dict[Tuple[str, str], Dict[str, Any]]:
    """symbol()/decimals() answers for a handful of well-known tokens."""
    return {
        ("ethereum", "erc20:symbol"): {USDC: "USDC", DAI: "DAI"},
        ("ethereum", "erc20:decimals"): {USDC: 6, DAI: 18},
        ("bsc", "erc20:symbol"): {BSC_USDC: "USDC"},
        ("bsc", "erc20:decimals"): {BSC_USDC: 18},
        ("polygon", "erc20:symbol"): {POLYGON_USDC: "USDC"},
        ("polygon", "erc20:decimals"): {POLYGON_USDC: 6},
    }


@pytest.fixture
def usd_prices() -> Dict[str, float]:
    """USD prices keyed by address or CoinGecko id."""
    return {
        USDC: 1.0,
        DAI: 1.0,
        BSC_USDC: 1.0,
        POLYGON_USDC: 1.0,
        "ethereum": 2000.0,
        "bitcoin": 40000.0,
    }


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
