"""
UserOperation hashes as computed by each EntryPoint revision.

v0.6 and v0.7 hash an abi-encoded tuple of the (hashed) fields, then hash
again with the EntryPoint address and chain id. v0.8 replaces this with an
EIP-712 digest over the packed fields.
"""

from __future__ import annotations

from typing import Union

from ...types.address import Address
from ...types.typed_data import TypedData, TypedDataDomain, TypedDataField
from ...types.user_operation import (
    EntryPointVersion,
    UserOperationV06,
    UserOperationV07,
    entry_point_address,
)
from ..encoding import hexutil
from ..encoding.abi import encode_abi_bytes
from .message_hash import hash_typed_data, keccak256
from .packed import get_account_gas_limits, get_gas_fees, get_init_code, get_paymaster_and_data

PACKED_USER_OPERATION_TYPES = {
    "PackedUserOperation": [
        TypedDataField("sender", "address"),
        TypedDataField("nonce", "uint256"),
        TypedDataField("initCode", "bytes"),
        TypedDataField("callData", "bytes"),
        TypedDataField("accountGasLimits", "bytes32"),
        TypedDataField("preVerificationGas", "uint256"),
        TypedDataField("gasFees", "bytes32"),
        TypedDataField("paymasterAndData", "bytes"),
    ],
}


def _finalize(inner: bytes, entry_point: Address, chain_id: int) -> str:
    outer = encode_abi_bytes(["bytes32", "address", "uint256"], [keccak256(inner), entry_point, chain_id])
    return hexutil.encode(keccak256(outer))


def get_user_operation_hash_v07(
    user_op: UserOperationV07,
    entry_point: Address,
    chain_id: int,
) -> str:
    packed = encode_abi_bytes(
        ["address", "uint256", "bytes32", "bytes32", "bytes32", "uint256", "bytes32", "bytes32"],
        [
            user_op.sender,
            user_op.nonce,
            keccak256(get_init_code(user_op)),
            keccak256(user_op.call_data),
            get_account_gas_limits(user_op),
            user_op.pre_verification_gas,
            get_gas_fees(user_op),
            keccak256(get_paymaster_and_data(user_op)),
        ],
    )
    return _finalize(packed, entry_point, chain_id)


def get_user_operation_hash_v06(
    user_op: UserOperationV06,
    entry_point: Address,
    chain_id: int,
) -> str:
    packed = encode_abi_bytes(
        [
            "address", "uint256", "bytes32", "bytes32", "uint256",
            "uint256", "uint256", "uint256", "uint256", "bytes32",
        ],
        [
            user_op.sender,
            user_op.nonce,
            keccak256(user_op.init_code),
            keccak256(user_op.call_data),
            user_op.call_gas_limit,
            user_op.verification_gas_limit,
            user_op.pre_verification_gas,
            user_op.max_fee_per_gas,
            user_op.max_priority_fee_per_gas,
            keccak256(user_op.paymaster_and_data),
        ],
    )
    return _finalize(packed, entry_point, chain_id)


def get_user_operation_typed_data_v08(user_op: UserOperationV07, chain_id: int) -> TypedData:
    return TypedData(
        domain=TypedDataDomain(
            name="ERC4337",
            version="1",
            chain_id=chain_id,
            verifying_contract=entry_point_address(EntryPointVersion.V08),
        ),
        types=PACKED_USER_OPERATION_TYPES,
        primary_type="PackedUserOperation",
        message={
            "sender": user_op.sender,
            "nonce": user_op.nonce,
            "initCode": get_init_code(user_op),
            "callData": user_op.call_data,
            "accountGasLimits": get_account_gas_limits(user_op),
            "preVerificationGas": user_op.pre_verification_gas,
            "gasFees": get_gas_fees(user_op),
            "paymasterAndData": get_paymaster_and_data(user_op),
        },
    )


def get_user_operation_hash_v08(user_op: UserOperationV07, chain_id: int) -> str:
    return hash_typed_data(get_user_operation_typed_data_v08(user_op, chain_id))


def get_user_operation_hash(
    user_op: Union[UserOperationV06, UserOperationV07],
    entry_point_version: EntryPointVersion,
    chain_id: int,
) -> str:
    """Hash ``user_op`` the way the given EntryPoint revision does."""
    if entry_point_version == EntryPointVersion.V06:
        if not isinstance(user_op, UserOperationV06):
            raise TypeError("EntryPoint v0.6 hashes UserOperationV06")
        return get_user_operation_hash_v06(user_op, entry_point_address(entry_point_version), chain_id)
    if not isinstance(user_op, UserOperationV07):
        raise TypeError("EntryPoint v0.7/v0.8 hash UserOperationV07")
    if entry_point_version == EntryPointVersion.V08:
        return get_user_operation_hash_v08(user_op, chain_id)
    return get_user_operation_hash_v07(user_op, entry_point_address(entry_point_version), chain_id)
