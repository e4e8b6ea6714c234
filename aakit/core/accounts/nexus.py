"""
Biconomy Nexus account with the K1 (ECDSA) validator.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from ...types.address import Address
from ...types.call import Call
from ...types.typed_data import TypedData, TypedDataDomain
from ...types.user_operation import EntryPointVersion, UserOperationV07
from ..encoding import hexutil
from ..encoding.abi import encode_call
from ..hashing.message_hash import hash_domain, hash_message, hash_typed_data, keccak256
from ..hashing.user_op_hash import get_user_operation_hash_v07
from ..signing.owner import AccountOwner
from ..standards.erc7579 import encode_7579_calls, encode_7579_execute
from .addresses import NEXUS_ADDRESSES
from .base import AccountKind, FactoryData, SmartAccount

NEXUS_CREATE_ACCOUNT = "0x0d51f0b7"
PERSONAL_SIGN_TYPEHASH = keccak256(b"PersonalSign(bytes prefixed)")

_STUB_R = "81d4b4981670cb18f99f0b4a66446df1bf5b204d24cfcb659bf38ba27a4359b5"
_STUB_S = "711649ec2423c5e1247245eba2964679b6a1dbb85c992ae40b9b00c6935b02ff"


def nexus_nonce_key(validator: Address, key: int = 0) -> int:
    """key(3) || validation mode(1) || validator(20)."""
    packed = (key % 16777215).to_bytes(3, "big") + b"\x00" + validator.as_bytes()
    return int.from_bytes(packed, "big")


class NexusSmartAccount(SmartAccount):
    """
    Nexus smart account deployed through the K1 validator factory.

    UserOperation and message signatures are prefixed with the validator
    address so the account routes them to the K1 validator.
    """

    kind = AccountKind.NEXUS
    display_name = "Nexus account"

    def __init__(
        self,
        owner: AccountOwner,
        chain_id: int,
        version: str = "1.0.0",
        index: int = 0,
        attesters: Optional[List[Address]] = None,
        threshold: int = 0,
        factory_address: Optional[Address] = None,
        validator_address: Optional[Address] = None,
        public_client: Optional[Any] = None,
        address: Optional[Address] = None,
    ) -> None:
        super().__init__(chain_id, EntryPointVersion.V07, public_client, address)
        self.owner = owner
        self.version = version
        self.index = index
        self.attesters = list(attesters or [])
        self.threshold = threshold
        self.factory_address = factory_address or NEXUS_ADDRESSES.k1_validator_factory
        self.validator_address = validator_address or NEXUS_ADDRESSES.k1_validator

    @property
    def nonce_key(self) -> int:
        return nexus_nonce_key(self.validator_address)

    async def get_factory_data(self) -> Optional[FactoryData]:
        attesters = sorted(self.attesters, key=lambda a: a.hex)
        data = encode_call(
            NEXUS_CREATE_ACCOUNT,
            ["address", "uint256", "address[]", "uint8"],
            [self.owner.address, self.index, attesters, self.threshold],
        )
        return FactoryData(factory=self.factory_address, factory_data=data)

    def encode_call(self, call: Call) -> str:
        return encode_7579_execute(call)

    def _encode_batch(self, calls: Sequence[Call]) -> str:
        return encode_7579_calls(calls)

    def get_stub_signature(self) -> str:
        validator = hexutil.strip_0x(self.validator_address.hex).ljust(40, "0")
        return (
            "0x"
            + "00" * 31 + "40"
            + "00" * 12 + validator
            + "00" * 31 + "41"
            + _STUB_R
            + _STUB_S
            + "1b" + "00" * 31
        )

    async def sign_user_operation(self, user_op: UserOperationV07) -> str:
        user_op_hash = get_user_operation_hash_v07(user_op, self.entry_point, self.chain_id)
        signature = await self.owner.sign_personal_message(user_op_hash)
        return hexutil.concat([self.validator_address.hex, signature])

    async def sign_message(self, message: str) -> str:
        return await self._sign_wrapped(hash_message(message))

    async def sign_typed_data(self, typed_data: TypedData) -> str:
        return await self._sign_wrapped(hash_typed_data(typed_data))

    async def wrap_message_hash(self, message_hash: str) -> str:
        """ERC-7739 style ``PersonalSign(bytes prefixed)`` digest under the Nexus domain."""
        domain = TypedDataDomain(
            name="Nexus",
            version=self.version,
            chain_id=self.chain_id,
            verifying_contract=await self.get_address(),
        )
        struct_hash = keccak256(PERSONAL_SIGN_TYPEHASH + hexutil.decode(message_hash))
        digest = keccak256(b"\x19\x01" + hexutil.decode(hash_domain(domain)) + struct_hash)
        return hexutil.encode(digest)

    async def _sign_wrapped(self, message_hash: str) -> str:
        signature = await self.owner.sign_personal_message(await self.wrap_message_hash(message_hash))
        return hexutil.concat([self.validator_address.hex, signature])
