"""
Alchemy LightAccount: single ECDSA owner, ``execute``/``executeBatch`` and
EIP-1271 messages wrapped in ``LightAccountMessage(bytes message)``.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from ...types.address import Address
from ...types.call import Call
from ...types.typed_data import TypedData, TypedDataDomain, TypedDataField
from ...types.user_operation import EntryPointVersion, UserOperationV06, UserOperationV07
from ..encoding import hexutil
from ..encoding.abi import encode_call
from ..errors import UnsupportedVersionError
from ..hashing.message_hash import hash_message, hash_typed_data
from ..hashing.user_op_hash import get_user_operation_hash_v06, get_user_operation_hash_v07
from ..signing.owner import AccountOwner
from .addresses import LIGHT_ACCOUNT_FACTORIES, LightAccountVersion
from .base import DUMMY_ECDSA_SIGNATURE, AccountKind, FactoryData, SmartAccount, SmartAccountV06
from .simple import SimpleSelectors, encode_execute, encode_execute_batch_arrays

# v2 signature type byte for a plain EOA owner signature.
EOA_SIGNATURE_TYPE = "0x00"


def light_version_for_entry_point(entry_point_version: EntryPointVersion) -> LightAccountVersion:
    if entry_point_version == EntryPointVersion.V06:
        return LightAccountVersion.V1_1_0
    if entry_point_version == EntryPointVersion.V07:
        return LightAccountVersion.V2_0_0
    raise UnsupportedVersionError(
        "Light Account does not support EntryPoint v0.8. "
        "Use Simple7702SmartAccount for EIP-7702 support.",
        {"entry_point_version": entry_point_version.value},
    )


class LightSmartAccount(SmartAccountV06, SmartAccount):
    kind = AccountKind.LIGHT
    display_name = "Light account"

    def __init__(
        self,
        owner: AccountOwner,
        chain_id: int,
        entry_point_version: EntryPointVersion = EntryPointVersion.V07,
        salt: int = 0,
        version: Optional[LightAccountVersion] = None,
        factory_address: Optional[Address] = None,
        public_client: Optional[Any] = None,
        address: Optional[Address] = None,
    ) -> None:
        resolved_version = version or light_version_for_entry_point(entry_point_version)
        super().__init__(chain_id, entry_point_version, public_client, address)
        self.owner = owner
        self.salt = salt
        self.version = resolved_version
        self.factory_address = factory_address or LIGHT_ACCOUNT_FACTORIES[resolved_version]

    def _with_type_prefix(self, signature: str) -> str:
        if self.version == LightAccountVersion.V2_0_0:
            return hexutil.concat([EOA_SIGNATURE_TYPE, signature])
        return signature

    async def get_factory_data(self) -> Optional[FactoryData]:
        data = encode_call(
            SimpleSelectors.CREATE_ACCOUNT,
            ["address", "uint256"],
            [self.owner.address, self.salt],
        )
        return FactoryData(factory=self.factory_address, factory_data=data)

    def encode_call(self, call: Call) -> str:
        return encode_execute(call)

    def _encode_batch(self, calls: Sequence[Call]) -> str:
        return encode_execute_batch_arrays(calls)

    def get_stub_signature(self) -> str:
        return self._with_type_prefix(DUMMY_ECDSA_SIGNATURE)

    async def sign_user_operation(self, user_op: UserOperationV07) -> str:
        user_op_hash = get_user_operation_hash_v07(user_op, self.entry_point, self.chain_id)
        return self._with_type_prefix(await self.owner.sign_personal_message(user_op_hash))

    async def sign_user_operation_v06(self, user_op: UserOperationV06) -> str:
        user_op_hash = get_user_operation_hash_v06(user_op, self.entry_point, self.chain_id)
        return self._with_type_prefix(await self.owner.sign_personal_message(user_op_hash))

    async def sign_message(self, message: str) -> str:
        signature = await self._sign_wrapped(hash_message(message))
        return self._with_type_prefix(signature)

    async def sign_typed_data(self, typed_data: TypedData) -> str:
        signature = await self._sign_wrapped(hash_typed_data(typed_data))
        return self._with_type_prefix(signature)

    async def _sign_wrapped(self, hashed_message: str) -> str:
        wrapped = TypedData(
            domain=TypedDataDomain(
                name="LightAccount",
                version="1",
                chain_id=self.chain_id,
                verifying_contract=await self.get_address(),
            ),
            types={"LightAccountMessage": [TypedDataField("message", "bytes")]},
            primary_type="LightAccountMessage",
            message={"message": hashed_message},
        )
        return await self.owner.sign_personal_message(hash_typed_data(wrapped))
