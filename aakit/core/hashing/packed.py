"""
PackedUserOperation helpers (EntryPoint v0.7 on-chain layout).

The v0.7 JSON form keeps factory and paymaster fields separate; on chain they
are packed into ``initCode``, ``accountGasLimits``, ``gasFees`` and
``paymasterAndData``. These helpers convert in both directions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...types.address import Address
from ...types.user_operation import UserOperationV07
from ..encoding import hexutil


@dataclass(frozen=True)
class PackedUserOperation:
    sender: Address
    nonce: int
    init_code: str
    call_data: str
    account_gas_limits: str
    pre_verification_gas: int
    gas_fees: str
    paymaster_and_data: str
    signature: str

    def to_json(self) -> Dict[str, Any]:
        return {
            "sender": self.sender.hex,
            "nonce": hexutil.from_int(self.nonce),
            "initCode": self.init_code,
            "callData": self.call_data,
            "accountGasLimits": self.account_gas_limits,
            "preVerificationGas": hexutil.from_int(self.pre_verification_gas),
            "gasFees": self.gas_fees,
            "paymasterAndData": self.paymaster_and_data,
            "signature": self.signature,
        }


def get_init_code(user_op: UserOperationV07) -> str:
    if user_op.factory is None:
        return "0x"
    return hexutil.concat([user_op.factory.hex, user_op.factory_data or "0x"])


def pack_uint128_pair(high: int, low: int) -> str:
    return hexutil.concat([hexutil.from_int(high, 16), hexutil.from_int(low, 16)])


def get_account_gas_limits(user_op: UserOperationV07) -> str:
    return pack_uint128_pair(user_op.verification_gas_limit, user_op.call_gas_limit)


def get_gas_fees(user_op: UserOperationV07) -> str:
    return pack_uint128_pair(user_op.max_priority_fee_per_gas, user_op.max_fee_per_gas)


def get_paymaster_and_data(user_op: UserOperationV07) -> str:
    if user_op.paymaster is None:
        return "0x"
    return hexutil.concat([
        user_op.paymaster.hex,
        hexutil.from_int(user_op.paymaster_verification_gas_limit or 0, 16),
        hexutil.from_int(user_op.paymaster_post_op_gas_limit or 0, 16),
        user_op.paymaster_data or "0x",
    ])


def get_packed_user_operation(user_op: UserOperationV07) -> PackedUserOperation:
    return PackedUserOperation(
        sender=user_op.sender,
        nonce=user_op.nonce,
        init_code=get_init_code(user_op),
        call_data=user_op.call_data,
        account_gas_limits=get_account_gas_limits(user_op),
        pre_verification_gas=user_op.pre_verification_gas,
        gas_fees=get_gas_fees(user_op),
        paymaster_and_data=get_paymaster_and_data(user_op),
        signature=user_op.signature,
    )


@dataclass(frozen=True)
class UnpackedInitCode:
    factory: Optional[Address] = None
    factory_data: Optional[str] = None


@dataclass(frozen=True)
class UnpackedAccountGasLimits:
    verification_gas_limit: int
    call_gas_limit: int


@dataclass(frozen=True)
class UnpackedGasFees:
    max_priority_fee_per_gas: int
    max_fee_per_gas: int


@dataclass(frozen=True)
class UnpackedPaymasterAndData:
    paymaster: Optional[Address] = None
    paymaster_verification_gas_limit: Optional[int] = None
    paymaster_post_op_gas_limit: Optional[int] = None
    paymaster_data: Optional[str] = None


def unpack_init_code(init_code: str) -> UnpackedInitCode:
    clean = hexutil.strip_0x(init_code or "")
    if len(clean) < 40:
        return UnpackedInitCode()
    return UnpackedInitCode(
        factory=Address("0x" + clean[:40]),
        factory_data="0x" + clean[40:],
    )


def unpack_account_gas_limits(account_gas_limits: str) -> UnpackedAccountGasLimits:
    clean = hexutil.strip_0x(account_gas_limits)
    return UnpackedAccountGasLimits(
        verification_gas_limit=int(clean[:32], 16),
        call_gas_limit=int(clean[32:64], 16),
    )


def unpack_gas_fees(gas_fees: str) -> UnpackedGasFees:
    clean = hexutil.strip_0x(gas_fees)
    return UnpackedGasFees(
        max_priority_fee_per_gas=int(clean[:32], 16),
        max_fee_per_gas=int(clean[32:64], 16),
    )


def unpack_paymaster_and_data(paymaster_and_data: str) -> UnpackedPaymasterAndData:
    clean = hexutil.strip_0x(paymaster_and_data or "")
    # paymaster (20) + verification gas (16) + post-op gas (16)
    if len(clean) < 104:
        return UnpackedPaymasterAndData()
    return UnpackedPaymasterAndData(
        paymaster=Address("0x" + clean[:40]),
        paymaster_verification_gas_limit=int(clean[40:72], 16),
        paymaster_post_op_gas_limit=int(clean[72:104], 16),
        paymaster_data="0x" + clean[104:],
    )


def unpack_user_operation(packed: PackedUserOperation) -> UserOperationV07:
    init_code = unpack_init_code(packed.init_code)
    gas_limits = unpack_account_gas_limits(packed.account_gas_limits)
    fees = unpack_gas_fees(packed.gas_fees)
    paymaster = unpack_paymaster_and_data(packed.paymaster_and_data)
    return UserOperationV07(
        sender=packed.sender,
        nonce=packed.nonce,
        factory=init_code.factory,
        factory_data=init_code.factory_data,
        call_data=packed.call_data,
        verification_gas_limit=gas_limits.verification_gas_limit,
        call_gas_limit=gas_limits.call_gas_limit,
        pre_verification_gas=packed.pre_verification_gas,
        max_priority_fee_per_gas=fees.max_priority_fee_per_gas,
        max_fee_per_gas=fees.max_fee_per_gas,
        paymaster=paymaster.paymaster,
        paymaster_verification_gas_limit=paymaster.paymaster_verification_gas_limit,
        paymaster_post_op_gas_limit=paymaster.paymaster_post_op_gas_limit,
        paymaster_data=paymaster.paymaster_data,
        signature=packed.signature,
    )
