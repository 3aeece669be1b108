"""
Batched read-only contract calls through Multicall3.

Every call is sent with allowFailure=True so one reverting token does not
take the whole batch down; each entry in the result reports its own success
flag. Callers are expected to keep only the successful entries.
"""

import asyncio
from functools import partial
from typing import Any, Dict, List, Optional, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector, to_checksum_address
from web3 import Web3

from tvl_toolkit.shared.constants import DEFAULT_CHAIN, MULTICALL3_ADDRESS
from tvl_toolkit.shared.exceptions import (
    ConfigurationException,
    MulticallException,
)
from tvl_toolkit.shared.logging import get_logger
from tvl_toolkit.shared.retry import RPC_RETRY_CONFIG
from tvl_toolkit.shared.services.web3_service import get_provider

logger = get_logger(__name__)

# Short ABI names accepted by multi_call, as "fn(inputs)(outputs)" signatures
ABI_SIGNATURES = {
    "erc20:decimals": "decimals()(uint8)",
    "erc20:symbol": "symbol()(string)",
    "erc20:name": "name()(string)",
    "erc20:totalSupply": "totalSupply()(uint256)",
    "erc20:balanceOf": "balanceOf(address)(uint256)",
}

AGGREGATE3_SELECTOR = function_signature_to_4byte_selector(
    "aggregate3((address,bool,bytes)[])"
)


def _split_types(types: str) -> List[str]:
    return [t.strip() for t in types.split(",") if t.strip()]


def parse_signature(abi: str) -> Tuple[str, List[str], List[str]]:
    """
    Split "fn(in)(out)" into (function signature, input types, output types).

    Short names like "erc20:symbol" are resolved through ABI_SIGNATURES first.
    """
    signature = ABI_SIGNATURES.get(abi, abi)
    split_at = signature.find(")(")
    if "(" not in signature or split_at == -1 or not signature.endswith(")"):
        raise ConfigurationException(f"Unsupported ABI: {abi}")

    function_signature = signature[: split_at + 1]
    input_types = _split_types(
        function_signature[function_signature.index("(") + 1 : -1]
    )
    output_types = _split_types(signature[split_at + 2 : -1])
    return function_signature, input_types, output_types


def _decode_output(output_types: List[str], data: bytes) -> Any:
    try:
        values = decode(output_types, data)
    except (DecodingError, OverflowError, ValueError):
        # Older tokens (MKR, SAI) return symbol/name as bytes32
        if output_types == ["string"] and len(data) == 32:
            return data.rstrip(b"\x00").decode("utf-8", errors="ignore")
        raise
    return values[0] if len(values) == 1 else list(values)


@RPC_RETRY_CONFIG.decorator()
async def _aggregate(
    w3: Web3, payload: List[Tuple[str, bool, bytes]], block: Any
) -> List[Tuple[bool, bytes]]:
    tx = {
        "to": to_checksum_address(MULTICALL3_ADDRESS),
        "data": "0x"
        + (
            AGGREGATE3_SELECTOR
            + encode(["(address,bool,bytes)[]"], [payload])
        ).hex(),
    }

    # Use executor to avoid blocking the event loop
    loop = asyncio.get_running_loop()
    raw = await loop.run_in_executor(
        None, partial(w3.eth.call, tx, block or "latest")
    )
    return decode(["(bool,bytes)[]"], bytes(raw))[0]


async def multi_call(
    abi: str,
    calls: Sequence[Dict[str, Any]],
    chain: Optional[str] = None,
    block: Optional[int] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Execute many read-only calls of the same function in one round trip.

    Args:
        abi: Short ABI name ("erc20:decimals") or "fn(in)(out)" signature
        calls: List of {"target": address, "params": [...]} dicts
        chain: Chain name (defaults to ethereum)
        block: Optional block number, latest when omitted

    Returns:
        {"output": [{"input": call, "output": value, "success": bool}]} in
        the same order as ``calls``

    Raises:
        ConfigurationException: If no provider is registered for the chain
        MulticallException: If the batched RPC call fails after retries
    """
    chain = chain or DEFAULT_CHAIN
    function_signature, input_types, output_types = parse_signature(abi)
    selector = function_signature_to_4byte_selector(function_signature)

    results: List[Dict[str, Any]] = [
        {
            "input": {
                "target": call["target"],
                "params": list(call.get("params") or []),
            },
            "output": None,
            "success": False,
        }
        for call in calls
    ]

    # Malformed targets are reported as failed calls instead of poisoning the batch
    payload: List[Tuple[str, bool, bytes]] = []
    sent_indexes: List[int] = []
    for index, call in enumerate(calls):
        try:
            target = to_checksum_address(str(call["target"]).lower())
            call_data = selector + encode(
                input_types, list(call.get("params") or [])
            )
        except (ValueError, TypeError) as e:
            logger.debug(f"Skipping call to {call.get('target')}: {e}")
            continue
        payload.append((target, True, call_data))
        sent_indexes.append(index)

    if not payload:
        return {"output": results}

    w3 = get_provider(chain)
    if w3 is None:
        raise ConfigurationException(f"No provider registered for {chain}")

    try:
        returned = await _aggregate(w3, payload, block)
    except Exception as e:
        raise MulticallException(
            f"Multicall {abi} on {chain} failed: {str(e)[:200]}"
        ) from e

    for index, (success, return_data) in zip(sent_indexes, returned):
        # Calls to accounts without code succeed with empty return data
        if not success or not return_data:
            continue
        try:
            results[index]["output"] = _decode_output(
                output_types, bytes(return_data)
            )
            results[index]["success"] = True
        except (DecodingError, OverflowError, ValueError):
            logger.debug(
                f"Could not decode {abi} for {results[index]['input']['target']}"
            )

    return {"output": results}
