"""
Example: Value a multichain portfolio in USD.

Map-form balances use raw on-chain units for contract addresses and plain
amounts for CoinGecko ids.
"""

import asyncio

from tvl_toolkit import compute_tvl

balances = {
    "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48": "2500000000",  # 2,500 USDC
    "0x0000000000000000000000000000000000000000": "1500000000000000000",  # 1.5 ETH
    "bsc:0x8AC76a51cc950d9822D68b83fE1Ad97B32Cd580d": "1000000000000000000",  # 1 USDC (BSC)
    "polygon:0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174": "3000000",  # 3 USDC.e (Polygon)
    "bitcoin": "0.05",
}

print("Valuing portfolio at current prices...")
result = asyncio.run(compute_tvl(balances, verbose=True))

print(f"\nTVL: ${result.usd_tvl:,.2f}")
for symbol, usd in result.usd_token_balances.items():
    print(f"{symbol}: {result.token_balances[symbol]} (${usd:,.2f})")

print("\n" + "=" * 50 + "\n")

# Same portfolio, list form (human-scaled balances on Ethereum)
entries = [
    {"address": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", "balance": "2500"},
    {"address": "0x0000000000000000000000000000000000000000", "balance": "1.5"},
]

print("Valuing list-form balances at 2023-11-14 22:13 UTC...")
result = asyncio.run(compute_tvl(entries, 1700000000))
print(f"TVL: ${result.usd_tvl:,.2f}")
