"""
Unit tests for the Multicall3 batching layer.

The Web3 connection is replaced with a mock whose eth.call returns an
ABI-encoded aggregate3 result, so encoding and decoding run for real.
"""

from unittest.mock import MagicMock, patch

import pytest
from eth_abi import decode, encode

from tests.fakes import DAI, USDC
from tvl_toolkit.contracts.multicall import (
    AGGREGATE3_SELECTOR,
    multi_call,
    parse_signature,
)
from tvl_toolkit.shared.exceptions import (
    ConfigurationException,
    MulticallException,
)
from tvl_toolkit.shared.services.web3_service import (
    set_provider,
    web3_service,
)

MKR = "0x9f8F72aA9304c8B593d555F12eF6589cC3A579A2"


async def _no_sleep(delay):
    return None


def aggregate3_response(results):
    """Encode [(success, return_data)] as Multicall3 would."""
    return encode(["(bool,bytes)[]"], [results])


def sent_calls(w3):
    """Decode the aggregate3 payload passed to eth.call."""
    tx = w3.eth.call.call_args[0][0]
    data = bytes.fromhex(tx["data"][2:])
    assert data[:4] == AGGREGATE3_SELECTOR
    return decode(["(address,bool,bytes)[]"], data[4:])[0]


@pytest.fixture
def mock_w3():
    w3 = MagicMock()
    set_provider("ethereum", w3)
    yield w3
    web3_service.reset()


class TestParseSignature:
    def test_short_name(self):
        assert parse_signature("erc20:decimals") == ("decimals()", [], ["uint8"])

    def test_full_signature(self):
        assert parse_signature("balanceOf(address)(uint256)") == (
            "balanceOf(address)",
            ["address"],
            ["uint256"],
        )

    def test_multiple_outputs(self):
        assert parse_signature("getReserves()(uint112,uint112,uint32)") == (
            "getReserves()",
            [],
            ["uint112", "uint112", "uint32"],
        )

    @pytest.mark.parametrize("abi", ["erc20:unknown", "decimals()", "nope"])
    def test_rejects_unknown(self, abi):
        with pytest.raises(ConfigurationException):
            parse_signature(abi)


class TestMultiCall:
    @pytest.mark.asyncio
    async def test_decodes_in_input_order(self, mock_w3):
        mock_w3.eth.call.return_value = aggregate3_response(
            [
                (True, encode(["uint8"], [6])),
                (True, encode(["uint8"], [18])),
            ]
        )

        result = await multi_call(
            "erc20:decimals",
            [{"target": USDC, "params": []}, {"target": DAI, "params": []}],
        )

        assert result["output"] == [
            {"input": {"target": USDC, "params": []}, "output": 6, "success": True},
            {"input": {"target": DAI, "params": []}, "output": 18, "success": True},
        ]
        payload = sent_calls(mock_w3)
        assert [target.lower() for target, _, _ in payload] == [
            USDC.lower(),
            DAI.lower(),
        ]
        assert all(allow_failure for _, allow_failure, _ in payload)

    @pytest.mark.asyncio
    async def test_encodes_params(self, mock_w3):
        holder = "0x000000000000000000000000000000000000dEaD"
        mock_w3.eth.call.return_value = aggregate3_response(
            [(True, encode(["uint256"], [10**21]))]
        )

        result = await multi_call(
            "erc20:balanceOf", [{"target": DAI, "params": [holder]}]
        )

        assert result["output"][0]["output"] == 10**21
        _, _, call_data = sent_calls(mock_w3)[0]
        assert decode(["address"], call_data[4:])[0].lower() == holder.lower()

    @pytest.mark.asyncio
    async def test_reverted_and_empty_calls_fail(self, mock_w3):
        mock_w3.eth.call.return_value = aggregate3_response(
            [(False, b""), (True, b"")]
        )

        result = await multi_call(
            "erc20:symbol", [{"target": USDC}, {"target": DAI}]
        )

        assert [entry["success"] for entry in result["output"]] == [
            False,
            False,
        ]
        assert all(entry["output"] is None for entry in result["output"])

    @pytest.mark.asyncio
    async def test_bytes32_symbol(self, mock_w3):
        mock_w3.eth.call.return_value = aggregate3_response(
            [
                (True, b"MKR".ljust(32, b"\x00")),
                (True, encode(["string"], ["DAI"])),
            ]
        )

        result = await multi_call(
            "erc20:symbol", [{"target": MKR}, {"target": DAI}]
        )

        assert [entry["output"] for entry in result["output"]] == ["MKR", "DAI"]

    @pytest.mark.asyncio
    async def test_invalid_target_marked_failed(self, mock_w3):
        mock_w3.eth.call.return_value = aggregate3_response(
            [(True, encode(["uint8"], [6]))]
        )

        result = await multi_call(
            "erc20:decimals", [{"target": "0xnotanaddress"}, {"target": USDC}]
        )

        assert result["output"][0]["success"] is False
        assert result["output"][0]["input"]["target"] == "0xnotanaddress"
        assert result["output"][1]["output"] == 6
        assert len(sent_calls(mock_w3)) == 1

    @pytest.mark.asyncio
    async def test_no_valid_target_skips_rpc(self, mock_w3):
        result = await multi_call("erc20:decimals", [{"target": "bitcoin"}])

        assert result["output"][0]["success"] is False
        mock_w3.eth.call.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_chain(self):
        with pytest.raises(ConfigurationException):
            await multi_call(
                "erc20:decimals", [{"target": USDC}], chain="solana"
            )

    @pytest.mark.asyncio
    async def test_rpc_failure_raises_after_retries(self, mock_w3):
        mock_w3.eth.call.side_effect = ConnectionError("node down")

        with patch("asyncio.sleep", _no_sleep):
            with pytest.raises(MulticallException, match="node down"):
                await multi_call("erc20:decimals", [{"target": USDC}])

        assert mock_w3.eth.call.call_count == 3

    @pytest.mark.asyncio
    async def test_block_is_forwarded(self, mock_w3):
        mock_w3.eth.call.return_value = aggregate3_response(
            [(True, encode(["uint8"], [6]))]
        )

        await multi_call("erc20:decimals", [{"target": USDC}], block=17000000)

        assert mock_w3.eth.call.call_args[0][1] == 17000000
