"""Tests for ERC-20 helpers, state overrides, Safe MultiSend packing and 2D nonces."""

import pytest
from eth_abi import encode as eth_abi_encode
from eth_utils import keccak

from aakit.core.encoding import hexutil
from aakit.core.errors import EmptyBatchError
from aakit.core.standards import erc20
from aakit.core.standards.multisend import (
    MULTI_SEND_SELECTOR,
    MultiSendCall,
    OperationType,
    decode_multi_send,
    encode_multi_send,
    encode_multi_send_with_operations,
)
from aakit.core.standards.nonce import decode_nonce, encode_nonce
from aakit.types import Address, Call

TOKEN = Address("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48")
OWNER = Address("0x1111111111111111111111111111111111111111")
SPENDER = Address("0x2222222222222222222222222222222222222222")


# =============================================================================
# ERC-20
# =============================================================================


class TestErc20Calls:
    def test_approve(self):
        call = erc20.encode_approve(TOKEN, SPENDER, 100)
        assert call.to == TOKEN
        assert call.value == 0
        assert call.data == "0x095ea7b3" + eth_abi_encode(["address", "uint256"], [SPENDER.hex, 100]).hex()

    def test_transfer_selector(self):
        assert erc20.encode_transfer(TOKEN, SPENDER, 1).data.startswith("0xa9059cbb")

    def test_allowance_and_balance_calldata(self):
        assert erc20.encode_allowance_call(OWNER, SPENDER).startswith("0xdd62ed3e")
        assert erc20.encode_balance_of_call(OWNER) == "0x70a08231" + "00" * 12 + OWNER.hex[2:]

    def test_decode_uint256_result(self):
        assert erc20.decode_uint256_result("0x" + "00" * 31 + "2a") == 42
        assert erc20.decode_uint256_result("0x") == 0
        assert erc20.decode_uint256_result(None) == 0


class TestStateOverrides:
    def test_balance_slot_is_mapping_slot(self):
        expected = keccak(eth_abi_encode(["address", "uint256"], [OWNER.hex, 9]))
        assert erc20.balance_storage_slot(OWNER, 9) == hexutil.encode(expected)

    def test_allowance_slot_is_nested_mapping_slot(self):
        inner = keccak(eth_abi_encode(["address", "uint256"], [OWNER.hex, 10]))
        expected = keccak(eth_abi_encode(["address", "bytes32"], [SPENDER.hex, inner]))
        assert erc20.allowance_storage_slot(OWNER, SPENDER, 10) == hexutil.encode(expected)

    def test_balance_override_json(self):
        overrides = erc20.erc20_balance_override(TOKEN, OWNER, 9, balance=1)
        as_json = erc20.state_overrides_to_json(overrides)
        slot = erc20.balance_storage_slot(OWNER, 9)
        assert as_json == {TOKEN.hex: {"stateDiff": {slot: "0x" + "00" * 31 + "01"}}}

    def test_paymaster_override_merges_by_address(self):
        merged = erc20.erc20_paymaster_override(TOKEN, OWNER, SPENDER, balance_slot=9, allowance_slot=10)
        assert len(merged) == 1
        assert len(merged[0].state_diff) == 2

    def test_merge_later_values_win(self):
        merged = erc20.merge_state_overrides([
            erc20.StateOverride(address=TOKEN, balance=1, nonce=3),
            erc20.StateOverride(address=TOKEN, balance=2),
            erc20.StateOverride(address=OWNER, code="0x00"),
        ])
        assert merged[0].balance == 2
        assert merged[0].nonce == 3
        assert merged[1].code == "0x00"


# =============================================================================
# MultiSend
# =============================================================================


class TestMultiSend:
    def test_packed_layout(self):
        call = MultiSendCall(to=SPENDER, value=1, data="0xabcd", operation=OperationType.DELEGATE_CALL)
        data = encode_multi_send_with_operations([call])
        packed = "01" + SPENDER.hex[2:] + "00" * 31 + "01" + "00" * 31 + "02" + "abcd"
        assert data == MULTI_SEND_SELECTOR + eth_abi_encode(["bytes"], [bytes.fromhex(packed)]).hex()

    def test_roundtrip(self):
        calls = [Call(to=OWNER, value=0, data="0x"), Call(to=SPENDER, value=5, data="0x1234")]
        assert decode_multi_send(encode_multi_send(calls)) == calls

    def test_empty_raises(self):
        with pytest.raises(EmptyBatchError):
            encode_multi_send([])


# =============================================================================
# Nonces
# =============================================================================


def test_nonce_key_and_sequence() -> None:
    nonce = encode_nonce(key=7, sequence=3)
    assert nonce == (7 << 64) + 3
    decoded = decode_nonce(nonce)
    assert decoded.key == 7
    assert decoded.sequence == 3
