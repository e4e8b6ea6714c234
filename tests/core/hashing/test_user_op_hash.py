"""
Tests for UserOperation packing and per-EntryPoint hashing.

Expected hashes are rebuilt here from eth_abi and keccak so the packing
rules (initCode, accountGasLimits, gasFees, paymasterAndData) are checked
independently.
"""

import pytest
from eth_abi import encode as eth_abi_encode
from eth_utils import keccak

from aakit.core.encoding import hexutil
from aakit.core.hashing import (
    get_account_gas_limits,
    get_gas_fees,
    get_init_code,
    get_packed_user_operation,
    get_paymaster_and_data,
    get_user_operation_hash,
    get_user_operation_hash_v06,
    get_user_operation_hash_v07,
    get_user_operation_hash_v08,
    unpack_user_operation,
)
from aakit.types import Address, EntryPointVersion, UserOperationV06, UserOperationV07, entry_point_address

SENDER = Address("0x1234567890123456789012345678901234567890")
FACTORY = Address("0x9406Cc6185a346906296840746125a0E44976454")
PAYMASTER = Address("0x3333333333333333333333333333333333333333")


def _user_op(**overrides) -> UserOperationV07:
    fields = dict(
        sender=SENDER,
        nonce=5,
        call_data="0xb61d27f6",
        call_gas_limit=100000,
        verification_gas_limit=200000,
        pre_verification_gas=50000,
        max_fee_per_gas=30_000_000_000,
        max_priority_fee_per_gas=1_000_000_000,
        signature="0x",
    )
    fields.update(overrides)
    return UserOperationV07(**fields)


def _b(value: str) -> bytes:
    return hexutil.decode(value)


# =============================================================================
# Packing
# =============================================================================


class TestPacking:
    def test_init_code_empty_without_factory(self):
        assert get_init_code(_user_op()) == "0x"

    def test_init_code_concatenates_factory_and_data(self):
        op = _user_op(factory=FACTORY, factory_data="0xabcdef")
        assert get_init_code(op) == FACTORY.hex + "abcdef"

    def test_account_gas_limits_order(self):
        packed = get_account_gas_limits(_user_op())
        assert packed == hexutil.from_int(200000, 16) + hexutil.strip_0x(hexutil.from_int(100000, 16))

    def test_gas_fees_order(self):
        packed = get_gas_fees(_user_op())
        assert packed[:34] == hexutil.from_int(1_000_000_000, 16)
        assert hexutil.to_int("0x" + packed[34:]) == 30_000_000_000

    def test_paymaster_and_data(self):
        op = _user_op(
            paymaster=PAYMASTER,
            paymaster_verification_gas_limit=1,
            paymaster_post_op_gas_limit=2,
            paymaster_data="0xbeef",
        )
        packed = get_paymaster_and_data(op)
        assert hexutil.byte_length(packed) == 20 + 16 + 16 + 2
        assert packed.endswith("beef")

    def test_unpack_restores_fields(self):
        op = _user_op(
            factory=FACTORY,
            factory_data="0x01",
            paymaster=PAYMASTER,
            paymaster_verification_gas_limit=10,
            paymaster_post_op_gas_limit=20,
            paymaster_data="0x02",
            signature="0x03",
        )
        assert unpack_user_operation(get_packed_user_operation(op)) == op


# =============================================================================
# Hashes
# =============================================================================


def _expected_v07(op: UserOperationV07, entry_point: Address, chain_id: int) -> str:
    inner = eth_abi_encode(
        ["address", "uint256", "bytes32", "bytes32", "bytes32", "uint256", "bytes32", "bytes32"],
        [
            op.sender.hex,
            op.nonce,
            keccak(_b(get_init_code(op))),
            keccak(_b(op.call_data)),
            _b(get_account_gas_limits(op)),
            op.pre_verification_gas,
            _b(get_gas_fees(op)),
            keccak(_b(get_paymaster_and_data(op))),
        ],
    )
    outer = eth_abi_encode(["bytes32", "address", "uint256"], [keccak(inner), entry_point.hex, chain_id])
    return hexutil.encode(keccak(outer))


class TestUserOperationHash:
    def test_v07_matches_reference_packing(self):
        op = _user_op(factory=FACTORY, factory_data="0x5fbfb9cf")
        entry_point = entry_point_address(EntryPointVersion.V07)
        assert get_user_operation_hash_v07(op, entry_point, 11155111) == _expected_v07(op, entry_point, 11155111)

    def test_signature_does_not_affect_hash(self):
        entry_point = entry_point_address(EntryPointVersion.V07)
        assert get_user_operation_hash_v07(_user_op(signature="0x01"), entry_point, 1) == get_user_operation_hash_v07(
            _user_op(signature="0x02"), entry_point, 1
        )

    def test_chain_id_changes_hash(self):
        entry_point = entry_point_address(EntryPointVersion.V07)
        assert get_user_operation_hash_v07(_user_op(), entry_point, 1) != get_user_operation_hash_v07(
            _user_op(), entry_point, 10
        )

    def test_v06_matches_reference_packing(self):
        op = UserOperationV06(
            sender=SENDER,
            nonce=1,
            init_code="0x",
            call_data="0xabcd",
            call_gas_limit=1,
            verification_gas_limit=2,
            pre_verification_gas=3,
            max_fee_per_gas=4,
            max_priority_fee_per_gas=5,
            paymaster_and_data="0x",
        )
        entry_point = entry_point_address(EntryPointVersion.V06)
        inner = eth_abi_encode(
            [
                "address", "uint256", "bytes32", "bytes32", "uint256",
                "uint256", "uint256", "uint256", "uint256", "bytes32",
            ],
            [SENDER.hex, 1, keccak(b""), keccak(b"\xab\xcd"), 1, 2, 3, 4, 5, keccak(b"")],
        )
        outer = eth_abi_encode(["bytes32", "address", "uint256"], [keccak(inner), entry_point.hex, 1])
        assert get_user_operation_hash_v06(op, entry_point, 1) == hexutil.encode(keccak(outer))

    def test_v08_is_eip712_digest(self):
        op = _user_op()
        type_hash = keccak(
            text="PackedUserOperation(address sender,uint256 nonce,bytes initCode,bytes callData,"
            "bytes32 accountGasLimits,uint256 preVerificationGas,bytes32 gasFees,bytes paymasterAndData)"
        )
        struct_hash = keccak(
            eth_abi_encode(
                ["bytes32", "address", "uint256", "bytes32", "bytes32", "bytes32", "uint256", "bytes32", "bytes32"],
                [
                    type_hash,
                    op.sender.hex,
                    op.nonce,
                    keccak(b""),
                    keccak(_b(op.call_data)),
                    _b(get_account_gas_limits(op)),
                    op.pre_verification_gas,
                    _b(get_gas_fees(op)),
                    keccak(b""),
                ],
            )
        )
        domain_separator = keccak(
            eth_abi_encode(
                ["bytes32", "bytes32", "bytes32", "uint256", "address"],
                [
                    keccak(text="EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"),
                    keccak(text="ERC4337"),
                    keccak(text="1"),
                    1,
                    entry_point_address(EntryPointVersion.V08).hex,
                ],
            )
        )
        expected = hexutil.encode(keccak(b"\x19\x01" + domain_separator + struct_hash))
        assert get_user_operation_hash_v08(op, 1) == expected

    def test_dispatch_by_version(self):
        op = _user_op()
        assert get_user_operation_hash(op, EntryPointVersion.V07, 1) == get_user_operation_hash_v07(
            op, entry_point_address(EntryPointVersion.V07), 1
        )
        assert get_user_operation_hash(op, EntryPointVersion.V08, 1) == get_user_operation_hash_v08(op, 1)

    def test_dispatch_rejects_mismatched_model(self):
        with pytest.raises(TypeError):
            get_user_operation_hash(_user_op(), EntryPointVersion.V06, 1)
