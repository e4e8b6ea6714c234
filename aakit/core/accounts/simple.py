"""
eth-infinitism SimpleAccount and its EIP-7702 sibling Simple7702Account.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from ...types.address import Address
from ...types.call import Call
from ...types.typed_data import TypedData
from ...types.user_operation import EntryPointVersion, UserOperationV06, UserOperationV07
from ..encoding.abi import encode_call
from ..hashing.message_hash import hash_message
from ..hashing.user_op_hash import (
    get_user_operation_hash_v06,
    get_user_operation_hash_v07,
    get_user_operation_hash_v08,
)
from ..signing.owner import AccountOwner
from .addresses import SIMPLE_7702_LOGIC, SIMPLE_ACCOUNT_FACTORIES
from .base import (
    DUMMY_ECDSA_SIGNATURE,
    AccountKind,
    Eip7702Account,
    FactoryData,
    SmartAccount,
    SmartAccountV06,
)


class SimpleSelectors:
    EXECUTE = "0xb61d27f6"
    EXECUTE_BATCH = "0x47e1da2a"
    EXECUTE_BATCH_V08 = "0x34fcd5be"
    CREATE_ACCOUNT = "0x5fbfb9cf"


def encode_execute(call: Call) -> str:
    """``execute(address,uint256,bytes)``."""
    return encode_call(SimpleSelectors.EXECUTE, ["address", "uint256", "bytes"], [call.to, call.value, call.data])


def encode_execute_batch_arrays(calls: Sequence[Call]) -> str:
    """``executeBatch(address[],uint256[],bytes[])``."""
    return encode_call(
        SimpleSelectors.EXECUTE_BATCH,
        ["address[]", "uint256[]", "bytes[]"],
        [[c.to for c in calls], [c.value for c in calls], [c.data for c in calls]],
    )


def encode_execute_batch_tuples(calls: Sequence[Call]) -> str:
    """``executeBatch((address,uint256,bytes)[])``, the v0.8 layout."""
    return encode_call(
        SimpleSelectors.EXECUTE_BATCH_V08,
        ["(address,uint256,bytes)[]"],
        [[(c.to, c.value, c.data) for c in calls]],
    )


class SimpleSmartAccount(SmartAccountV06, SmartAccount):
    """
    Single-owner SimpleAccount for EntryPoint v0.6, v0.7 and v0.8.

    The address comes from the factory via ``getSenderAddress`` unless given.
    """

    kind = AccountKind.SIMPLE
    display_name = "Simple account"

    def __init__(
        self,
        owner: AccountOwner,
        chain_id: int,
        entry_point_version: EntryPointVersion = EntryPointVersion.V07,
        salt: int = 0,
        factory_address: Optional[Address] = None,
        public_client: Optional[Any] = None,
        address: Optional[Address] = None,
    ) -> None:
        super().__init__(chain_id, entry_point_version, public_client, address)
        self.owner = owner
        self.salt = salt
        self.factory_address = factory_address or SIMPLE_ACCOUNT_FACTORIES[entry_point_version]

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
        if self.entry_point_version == EntryPointVersion.V08:
            return encode_execute_batch_tuples(calls)
        return encode_execute_batch_arrays(calls)

    def get_stub_signature(self) -> str:
        return DUMMY_ECDSA_SIGNATURE

    async def sign_user_operation(self, user_op: UserOperationV07) -> str:
        if self.entry_point_version == EntryPointVersion.V08:
            return await self.owner.sign_raw_hash(get_user_operation_hash_v08(user_op, self.chain_id))
        user_op_hash = get_user_operation_hash_v07(user_op, self.entry_point, self.chain_id)
        return await self.owner.sign_personal_message(user_op_hash)

    async def sign_user_operation_v06(self, user_op: UserOperationV06) -> str:
        user_op_hash = get_user_operation_hash_v06(user_op, self.entry_point, self.chain_id)
        return await self.owner.sign_personal_message(user_op_hash)

    async def sign_message(self, message: str) -> str:
        return await self.owner.sign_personal_message(hash_message(message))

    async def sign_typed_data(self, typed_data: TypedData) -> str:
        return await self.owner.sign_typed_data(typed_data)


class Simple7702SmartAccount(Eip7702Account, SmartAccount):
    """
    EOA delegated to Simple7702Account logic (EntryPoint v0.8).

    UserOperations are signed over the EIP-712 ``PackedUserOperation`` digest.
    """

    kind = AccountKind.SIMPLE_7702
    display_name = "EIP-7702 Simple account"

    def __init__(
        self,
        owner: AccountOwner,
        chain_id: int,
        public_client: Optional[Any] = None,
        account_logic_address: Optional[Address] = None,
    ) -> None:
        super().__init__(chain_id, EntryPointVersion.V08, public_client, owner.address)
        self.owner = owner
        self._account_logic_address = account_logic_address or SIMPLE_7702_LOGIC

    @property
    def account_logic_address(self) -> Address:
        return self._account_logic_address

    async def get_address(self) -> Address:
        return self.owner.address

    async def get_factory_data(self) -> Optional[FactoryData]:
        return None

    def encode_call(self, call: Call) -> str:
        return encode_execute(call)

    def _encode_batch(self, calls: Sequence[Call]) -> str:
        return encode_execute_batch_tuples(calls)

    def get_stub_signature(self) -> str:
        return DUMMY_ECDSA_SIGNATURE

    def get_user_operation_hash(self, user_op: UserOperationV07) -> str:
        return get_user_operation_hash_v08(user_op, self.chain_id)

    async def sign_user_operation(self, user_op: UserOperationV07) -> str:
        return await self.owner.sign_raw_hash(self.get_user_operation_hash(user_op))

    async def sign_message(self, message: str) -> str:
        await self._ensure_delegated(self.display_name)
        return await self.owner.sign_raw_hash(hash_message(message))

    async def sign_typed_data(self, typed_data: TypedData) -> str:
        await self._ensure_delegated(self.display_name)
        return await self.owner.sign_typed_data(typed_data)
