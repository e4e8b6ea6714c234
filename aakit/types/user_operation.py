"""
ERC-4337 UserOperation models.

Two wire revisions exist: v0.6 carries ``initCode`` and ``paymasterAndData``
blobs, v0.7 (also used by EntryPoint v0.8) splits them into factory and
paymaster fields. Both are frozen; ``copy_with`` returns an updated copy.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..core.encoding import hexutil
from .address import Address


class EntryPointVersion(str, Enum):
    V06 = "0.6"
    V07 = "0.7"
    V08 = "0.8"

    @classmethod
    def parse(cls, value: Union[str, "EntryPointVersion"]) -> "EntryPointVersion":
        """Accept ``0.7``, ``v07``, ``v0.7`` or ``07``."""
        if isinstance(value, cls):
            return value
        digits = str(value).lower().lstrip("v").replace(".", "")
        for version in cls:
            if version.value.replace(".", "") == digits:
                return version
        raise ValueError(f"Unknown EntryPoint version: {value}")


ENTRY_POINT_ADDRESSES: Dict[EntryPointVersion, Address] = {
    EntryPointVersion.V06: Address("0x5FF137D4b0FDCD49DcA30c7CF57E578a026d2789"),
    EntryPointVersion.V07: Address("0x0000000071727De22E5E9d8BAf0edAc6f37da032"),
    EntryPointVersion.V08: Address("0x4337084d9e255ff0702461cf8895ce9e3b5ff108"),
}


def entry_point_address(version: EntryPointVersion) -> Address:
    return ENTRY_POINT_ADDRESSES[version]


def _hex(value: int) -> str:
    return hexutil.from_int(value)


def _copy_with(op, changes: Dict[str, Any]):
    updates = {key: value for key, value in changes.items() if value is not None}
    return dataclasses.replace(op, **updates)


@dataclass(frozen=True)
class UserOperationV06:
    sender: Address
    nonce: int
    call_data: str
    call_gas_limit: int = 0
    verification_gas_limit: int = 0
    pre_verification_gas: int = 0
    max_fee_per_gas: int = 0
    max_priority_fee_per_gas: int = 0
    init_code: str = "0x"
    paymaster_and_data: str = "0x"
    signature: str = "0x"

    def copy_with(self, **changes: Any) -> "UserOperationV06":
        return _copy_with(self, changes)

    def to_json(self) -> Dict[str, Any]:
        return {
            "sender": self.sender.hex,
            "nonce": _hex(self.nonce),
            "initCode": self.init_code,
            "callData": self.call_data,
            "callGasLimit": _hex(self.call_gas_limit),
            "verificationGasLimit": _hex(self.verification_gas_limit),
            "preVerificationGas": _hex(self.pre_verification_gas),
            "maxFeePerGas": _hex(self.max_fee_per_gas),
            "maxPriorityFeePerGas": _hex(self.max_priority_fee_per_gas),
            "paymasterAndData": self.paymaster_and_data,
            "signature": self.signature,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "UserOperationV06":
        return cls(
            sender=Address.from_hex(data["sender"]),
            nonce=hexutil.parse_int(data["nonce"]),
            init_code=data.get("initCode") or "0x",
            call_data=data["callData"],
            call_gas_limit=hexutil.parse_int(data["callGasLimit"]),
            verification_gas_limit=hexutil.parse_int(data["verificationGasLimit"]),
            pre_verification_gas=hexutil.parse_int(data["preVerificationGas"]),
            max_fee_per_gas=hexutil.parse_int(data["maxFeePerGas"]),
            max_priority_fee_per_gas=hexutil.parse_int(data["maxPriorityFeePerGas"]),
            paymaster_and_data=data.get("paymasterAndData") or "0x",
            signature=data.get("signature") or "0x",
        )


@dataclass(frozen=True)
class UserOperationV07:
    sender: Address
    nonce: int
    call_data: str
    call_gas_limit: int = 0
    verification_gas_limit: int = 0
    pre_verification_gas: int = 0
    max_fee_per_gas: int = 0
    max_priority_fee_per_gas: int = 0
    factory: Optional[Address] = None
    factory_data: Optional[str] = None
    paymaster: Optional[Address] = None
    paymaster_verification_gas_limit: Optional[int] = None
    paymaster_post_op_gas_limit: Optional[int] = None
    paymaster_data: Optional[str] = None
    signature: str = "0x"

    def copy_with(self, **changes: Any) -> "UserOperationV07":
        return _copy_with(self, changes)

    def to_json(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "sender": self.sender.hex,
            "nonce": _hex(self.nonce),
            "callData": self.call_data,
            "callGasLimit": _hex(self.call_gas_limit),
            "verificationGasLimit": _hex(self.verification_gas_limit),
            "preVerificationGas": _hex(self.pre_verification_gas),
            "maxFeePerGas": _hex(self.max_fee_per_gas),
            "maxPriorityFeePerGas": _hex(self.max_priority_fee_per_gas),
            "signature": self.signature,
        }
        if self.factory is not None:
            result["factory"] = self.factory.hex
        if self.factory_data is not None:
            result["factoryData"] = self.factory_data
        if self.paymaster is not None:
            result["paymaster"] = self.paymaster.hex
        if self.paymaster_verification_gas_limit is not None:
            result["paymasterVerificationGasLimit"] = _hex(self.paymaster_verification_gas_limit)
        if self.paymaster_post_op_gas_limit is not None:
            result["paymasterPostOpGasLimit"] = _hex(self.paymaster_post_op_gas_limit)
        if self.paymaster_data is not None:
            result["paymasterData"] = self.paymaster_data
        return result

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "UserOperationV07":
        def parse_optional(value: Optional[str]) -> Optional[int]:
            if value is None:
                return None
            return hexutil.parse_int(value)

        return cls(
            sender=Address.from_hex(data["sender"]),
            nonce=hexutil.parse_int(data["nonce"]),
            factory=Address.from_hex(data["factory"]) if data.get("factory") else None,
            factory_data=data.get("factoryData"),
            call_data=data["callData"],
            call_gas_limit=hexutil.parse_int(data["callGasLimit"]),
            verification_gas_limit=hexutil.parse_int(data["verificationGasLimit"]),
            pre_verification_gas=hexutil.parse_int(data["preVerificationGas"]),
            max_fee_per_gas=hexutil.parse_int(data["maxFeePerGas"]),
            max_priority_fee_per_gas=hexutil.parse_int(data["maxPriorityFeePerGas"]),
            paymaster=Address.from_hex(data["paymaster"]) if data.get("paymaster") else None,
            paymaster_verification_gas_limit=parse_optional(data.get("paymasterVerificationGasLimit")),
            paymaster_post_op_gas_limit=parse_optional(data.get("paymasterPostOpGasLimit")),
            paymaster_data=data.get("paymasterData"),
            signature=data.get("signature") or "0x",
        )


UserOperation = Union[UserOperationV06, UserOperationV07]
