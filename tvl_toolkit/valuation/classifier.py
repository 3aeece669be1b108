"""Chain classification of balance identifiers."""

from typing import Iterable

from tvl_toolkit.shared.constants import (
    CHAINS,
    DEFAULT_CHAIN,
    GENERIC_BUCKET,
    SUPPORTED_CHAINS,
)
from tvl_toolkit.valuation.models import (
    ChainAddress,
    ChainBuckets,
    Classification,
    GenericId,
)

# "bsc:", "polygon:", "avax:" ... every valued chain except the default one
CHAIN_PREFIXES = {
    f"{chain}:": chain
    for chain in SUPPORTED_CHAINS
    if not CHAINS[chain].is_default
}


def classify_identifier(identifier: str) -> Classification:
    """
    Classify a balance key.

    Examples:
        >>> classify_identifier("polygon:0xabc")
        ChainAddress(chain='polygon', address='0xabc')
        >>> classify_identifier("0xabc")
        ChainAddress(chain='ethereum', address='0xabc')
        >>> classify_identifier("fantom:0xabc")
        GenericId(id='fantom:0xabc')
    """
    for prefix, chain in CHAIN_PREFIXES.items():
        if identifier.startswith(prefix):
            return ChainAddress(chain, identifier[len(prefix) :])
    if identifier.startswith("0x"):
        return ChainAddress(DEFAULT_CHAIN, identifier)
    return GenericId(identifier)


def empty_buckets() -> ChainBuckets:
    buckets: ChainBuckets = {chain: [] for chain in SUPPORTED_CHAINS}
    buckets[GENERIC_BUCKET] = []
    return buckets


def bucket_identifiers(identifiers: Iterable[str]) -> ChainBuckets:
    """Group identifiers into per-chain address lists plus the generic bucket."""
    buckets = empty_buckets()
    for identifier in identifiers:
        classification = classify_identifier(identifier)
        if isinstance(classification, ChainAddress):
            buckets[classification.chain].append(classification.address)
        else:
            buckets[GENERIC_BUCKET].append(classification.id)
    return buckets
