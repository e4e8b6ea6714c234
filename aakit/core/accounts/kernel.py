"""
ZeroDev Kernel accounts.

v0.2.4 runs on EntryPoint v0.6 with its own ``execute``/``executeBatch``
and a 4-byte ROOT mode prefix on signatures. v0.3.x runs on EntryPoint v0.7,
deploys through the meta factory and executes via ERC-7579. The root ECDSA
validator is selected through the nonce key.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from ...types.address import ZERO_ADDRESS, Address
from ...types.call import Call
from ...types.typed_data import TypedData, TypedDataDomain, TypedDataField
from ...types.user_operation import EntryPointVersion, UserOperationV06, UserOperationV07
from ..encoding import hexutil
from ..encoding.abi import encode_call
from ..errors import UnsupportedVersionError, ValidationError
from ..hashing.message_hash import hash_message, hash_typed_data
from ..hashing.user_op_hash import get_user_operation_hash_v06, get_user_operation_hash_v07
from ..signing.owner import AccountOwner
from ..standards.erc7579 import encode_7579_calls, encode_7579_execute
from .addresses import KERNEL_ADDRESSES, KernelAddresses, KernelVersion
from .base import (
    DUMMY_ECDSA_SIGNATURE,
    AccountKind,
    Eip7702Account,
    FactoryData,
    SmartAccount,
    SmartAccountV06,
)


class KernelSelectors:
    EXECUTE_V2 = "0xb61d27f6"
    EXECUTE_BATCH_V2 = "0x47e1da2a"
    CREATE_ACCOUNT_V2 = "0x296601cd"
    DEPLOY_WITH_FACTORY = "0xc5265d5d"
    INITIALIZE_V2 = "0xd1f57894"
    INITIALIZE_V3 = "0x3c3b752b"


class KernelValidatorMode:
    SUDO = 0x00
    ENABLE = 0x01


class KernelValidatorType:
    ROOT = 0x00
    VALIDATOR = 0x01
    PERMISSION = 0x02


ROOT_MODE_PREFIX = "0x00000000"


def kernel_v3_nonce_key(validator: Address) -> int:
    """mode(1) || type(1) || validator(20) || nonce salt(2)."""
    key = bytes([KernelValidatorMode.SUDO, KernelValidatorType.ROOT]) + validator.as_bytes() + b"\x00\x00"
    return int.from_bytes(key, "big")


class KernelSmartAccount(SmartAccountV06, SmartAccount):
    kind = AccountKind.KERNEL
    display_name = "Kernel account"

    def __init__(
        self,
        owner: AccountOwner,
        chain_id: int,
        version: KernelVersion = KernelVersion.V0_3_1,
        index: int = 0,
        addresses: Optional[KernelAddresses] = None,
        public_client: Optional[Any] = None,
        address: Optional[Address] = None,
    ) -> None:
        resolved = addresses or KERNEL_ADDRESSES.get(version)
        if resolved is None:
            raise UnsupportedVersionError(f"No addresses found for Kernel version {version.value}")
        if version.uses_erc7579 and (resolved.ecdsa_validator is None or resolved.meta_factory is None):
            raise ValidationError(
                f"ECDSA validator and meta factory addresses required for Kernel {version.value}",
                {"version": version.value},
            )
        entry_point_version = EntryPointVersion.V06 if version == KernelVersion.V0_2_4 else EntryPointVersion.V07
        super().__init__(chain_id, entry_point_version, public_client, address)
        self.owner = owner
        self.version = version
        self.index = index
        self.addresses = resolved

    @property
    def is_v2(self) -> bool:
        return self.version == KernelVersion.V0_2_4

    @property
    def nonce_key(self) -> int:
        if self.is_v2:
            return 0
        return kernel_v3_nonce_key(self.addresses.ecdsa_validator)

    async def get_factory_data(self) -> Optional[FactoryData]:
        if self.is_v2:
            data = encode_call(
                KernelSelectors.CREATE_ACCOUNT_V2,
                ["address", "bytes", "uint256"],
                [self.addresses.account_implementation, self._initialize_v2(), self.index],
            )
            return FactoryData(factory=self.addresses.factory, factory_data=data)

        data = encode_call(
            KernelSelectors.DEPLOY_WITH_FACTORY,
            ["address", "bytes", "bytes32"],
            [self.addresses.factory, self._initialize_v3(), hexutil.from_int(self.index, 32)],
        )
        return FactoryData(factory=self.addresses.meta_factory, factory_data=data)

    def _initialize_v2(self) -> str:
        # initialize(address defaultValidator, bytes enableData); enableData is the owner address
        validator = self.addresses.ecdsa_validator or self.addresses.account_implementation
        return encode_call(
            KernelSelectors.INITIALIZE_V2,
            ["address", "bytes"],
            [validator, self.owner.address.as_bytes()],
        )

    def _initialize_v3(self) -> str:
        # initialize(bytes21 rootValidator, address hook, bytes validatorData, bytes hookData, bytes[] initConfig)
        validator_id = bytes([KernelValidatorType.VALIDATOR]) + self.addresses.ecdsa_validator.as_bytes()
        return encode_call(
            KernelSelectors.INITIALIZE_V3,
            ["bytes21", "address", "bytes", "bytes", "bytes[]"],
            [validator_id, ZERO_ADDRESS, self.owner.address.as_bytes(), b"", []],
        )

    def encode_call(self, call: Call) -> str:
        if self.is_v2:
            return encode_call(
                KernelSelectors.EXECUTE_V2,
                ["address", "uint256", "bytes", "uint8"],
                [call.to, call.value, call.data, 0],
            )
        return encode_7579_execute(call)

    def _encode_batch(self, calls: Sequence[Call]) -> str:
        if self.is_v2:
            return encode_call(
                KernelSelectors.EXECUTE_BATCH_V2,
                ["(address,uint256,bytes)[]"],
                [[(c.to, c.value, c.data) for c in calls]],
            )
        return encode_7579_calls(calls)

    def get_stub_signature(self) -> str:
        if self.is_v2:
            return hexutil.concat([ROOT_MODE_PREFIX, DUMMY_ECDSA_SIGNATURE])
        return DUMMY_ECDSA_SIGNATURE

    async def sign_user_operation(self, user_op: UserOperationV07) -> str:
        user_op_hash = get_user_operation_hash_v07(user_op, self.entry_point, self.chain_id)
        signature = await self.owner.sign_raw_hash(user_op_hash)
        if self.is_v2:
            return hexutil.concat([ROOT_MODE_PREFIX, signature])
        return signature

    async def sign_user_operation_v06(self, user_op: UserOperationV06) -> str:
        user_op_hash = get_user_operation_hash_v06(user_op, self.entry_point, self.chain_id)
        signature = await self.owner.sign_raw_hash(user_op_hash)
        return hexutil.concat([ROOT_MODE_PREFIX, signature])

    async def sign_message(self, message: str) -> str:
        return await self.owner.sign_raw_hash(hash_message(message))

    async def sign_typed_data(self, typed_data: TypedData) -> str:
        return await self.owner.sign_typed_data(typed_data)


# Validator identifier prepended to EIP-1271 signatures of a delegated EOA.
KERNEL_7702_VALIDATOR_ID = "0x00"


class Kernel7702SmartAccount(Eip7702Account, SmartAccount):
    """
    EOA delegated to the Kernel v0.3.3 implementation.

    The EOA itself is the root validator owner; userOps go through the ECDSA
    validator selected by the nonce key, like a deployed v0.3 Kernel.
    """

    kind = AccountKind.KERNEL_7702
    display_name = "Kernel with EIP-7702"

    def __init__(
        self,
        owner: AccountOwner,
        chain_id: int,
        version: KernelVersion = KernelVersion.V0_3_3,
        public_client: Optional[Any] = None,
        account_logic_address: Optional[Address] = None,
        ecdsa_validator: Optional[Address] = None,
    ) -> None:
        if not version.supports_eip7702:
            raise UnsupportedVersionError(
                f"Kernel version {version.value} does not support EIP-7702. Use version 0.3.3.",
                {"version": version.value},
            )
        super().__init__(chain_id, EntryPointVersion.V07, public_client, owner.address)
        addresses = KERNEL_ADDRESSES[version]
        self.owner = owner
        self.version = version
        self._account_logic_address = account_logic_address or addresses.account_implementation
        self.ecdsa_validator = ecdsa_validator or addresses.ecdsa_validator

    @property
    def account_logic_address(self) -> Address:
        return self._account_logic_address

    @property
    def nonce_key(self) -> int:
        return kernel_v3_nonce_key(self.ecdsa_validator)

    async def get_address(self) -> Address:
        return self.owner.address

    async def get_factory_data(self) -> Optional[FactoryData]:
        return None

    def encode_call(self, call: Call) -> str:
        return encode_7579_execute(call)

    def _encode_batch(self, calls: Sequence[Call]) -> str:
        return encode_7579_calls(calls)

    def get_stub_signature(self) -> str:
        return DUMMY_ECDSA_SIGNATURE

    async def sign_user_operation(self, user_op: UserOperationV07) -> str:
        user_op_hash = get_user_operation_hash_v07(user_op, self.entry_point, self.chain_id)
        return await self.owner.sign_personal_message(user_op_hash)

    async def sign_message(self, message: str) -> str:
        return await self._sign_wrapped(hash_message(message))

    async def sign_typed_data(self, typed_data: TypedData) -> str:
        return await self._sign_wrapped(hash_typed_data(typed_data))

    async def _sign_wrapped(self, hashed_message: str) -> str:
        await self._ensure_delegated(self.display_name)
        wrapped = TypedData(
            domain=TypedDataDomain(
                name="Kernel",
                version=self.version.value,
                chain_id=self.chain_id,
                verifying_contract=self.owner.address,
            ),
            types={"Kernel": [TypedDataField("hash", "bytes32")]},
            primary_type="Kernel",
            message={"hash": hashed_message},
        )
        signature = await self.owner.sign_typed_data(wrapped)
        return hexutil.concat([KERNEL_7702_VALIDATOR_ID, signature])
