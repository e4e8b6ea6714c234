"""
Trust Wallet Barz account (EntryPoint v0.6, secp256k1 verification facet).
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from ...types.address import Address
from ...types.call import Call
from ...types.typed_data import TypedData, TypedDataDomain, TypedDataField
from ...types.user_operation import EntryPointVersion, UserOperationV06, UserOperationV07
from ..encoding.abi import encode_call
from ..errors import UnsupportedOperationError
from ..hashing.message_hash import hash_message, hash_typed_data
from ..hashing.user_op_hash import get_user_operation_hash_v06
from ..signing.owner import AccountOwner
from .addresses import TRUST_ADDRESSES, TrustAddresses
from .base import DUMMY_ECDSA_SIGNATURE, AccountKind, FactoryData, SmartAccount, SmartAccountV06
from .simple import encode_execute, encode_execute_batch_arrays

TRUST_CREATE_ACCOUNT = "0x296601cd"


class TrustSmartAccount(SmartAccountV06, SmartAccount):
    """
    Barz smart account.

    The factory takes the owner as raw 20 address bytes
    (``createAccount(address facet, bytes owner, uint256 salt)``). Only v0.6
    UserOperations can be signed.
    """

    kind = AccountKind.TRUST
    display_name = "Trust account"

    def __init__(
        self,
        owner: AccountOwner,
        chain_id: int,
        index: int = 0,
        nonce_key: int = 0,
        addresses: TrustAddresses = TRUST_ADDRESSES,
        public_client: Optional[Any] = None,
        address: Optional[Address] = None,
    ) -> None:
        super().__init__(chain_id, EntryPointVersion.V06, public_client, address)
        self.owner = owner
        self.index = index
        self.addresses = addresses
        self._nonce_key = nonce_key

    @property
    def nonce_key(self) -> int:
        return self._nonce_key

    async def get_factory_data(self) -> Optional[FactoryData]:
        data = encode_call(
            TRUST_CREATE_ACCOUNT,
            ["address", "bytes", "uint256"],
            [self.addresses.secp256k1_verification_facet, self.owner.address.as_bytes(), self.index],
        )
        return FactoryData(factory=self.addresses.factory, factory_data=data)

    def encode_call(self, call: Call) -> str:
        return encode_execute(call)

    def _encode_batch(self, calls: Sequence[Call]) -> str:
        return encode_execute_batch_arrays(calls)

    def get_stub_signature(self) -> str:
        return DUMMY_ECDSA_SIGNATURE

    async def sign_user_operation(self, user_op: UserOperationV07) -> str:
        raise UnsupportedOperationError(
            "Trust Smart Account only supports EntryPoint v0.6. Use sign_user_operation_v06 instead.",
            alternative="sign_user_operation_v06",
        )

    async def sign_user_operation_v06(self, user_op: UserOperationV06) -> str:
        user_op_hash = get_user_operation_hash_v06(user_op, self.entry_point, self.chain_id)
        return await self.owner.sign_personal_message(user_op_hash)

    async def sign_message(self, message: str) -> str:
        return await self._sign_wrapped(hash_message(message))

    async def sign_typed_data(self, typed_data: TypedData) -> str:
        return await self._sign_wrapped(hash_typed_data(typed_data))

    async def _sign_wrapped(self, hashed_message: str) -> str:
        wrapped = TypedData(
            domain=TypedDataDomain(
                name="Barz",
                version="v0.2.0",
                chain_id=self.chain_id,
                verifying_contract=await self.get_address(),
            ),
            types={"BarzMessage": [TypedDataField("message", "bytes")]},
            primary_type="BarzMessage",
            message={"message": hashed_message},
        )
        return await self.owner.sign_personal_message(hash_typed_data(wrapped))
