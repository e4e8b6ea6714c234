"""
Smart account capability surface.

Every account family implements ``SmartAccount``; optional capabilities are
mixins the orchestrator checks for (``Eip7702Account``, ``SmartAccountV06``).
The orchestrator dispatches family-specific steps on ``account.kind``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

from ...types.address import Address
from ...types.call import Call
from ...types.eip7702 import Eip7702Authorization
from ...types.typed_data import TypedData
from ...types.user_operation import EntryPointVersion, UserOperationV06, UserOperationV07, entry_point_address
from ..derivation import AddressCell, resolve_via_entry_point
from ..encoding import hexutil
from ..errors import EmptyBatchError, UnsupportedOperationError
from ..signing.authorization import sign_authorization
from ..signing.owner import AccountOwner

# 65-byte ECDSA-shaped filler accepted by ecrecover-based validators during simulation.
DUMMY_ECDSA_SIGNATURE = (
    "0xfffffffffffffffffffffffffffffff0000000000000000000000000000000007"
    "aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa1c"
)


class AccountKind(str, Enum):
    SIMPLE = "simple"
    SIMPLE_7702 = "simple_7702"
    LIGHT = "light"
    SAFE = "safe"
    KERNEL = "kernel"
    KERNEL_7702 = "kernel_7702"
    NEXUS = "nexus"
    TRUST = "trust"


@dataclass(frozen=True)
class FactoryData:
    factory: Address
    factory_data: str

    @property
    def init_code(self) -> str:
        return hexutil.concat([self.factory.hex, self.factory_data])


class SmartAccount(ABC):
    """
    A smart contract account owned by one or more ``AccountOwner`` signers.

    Subclasses set ``kind`` and ``display_name`` and implement the encoding
    and signing hooks. ``encode_calls`` enforces the batch rules for every
    family: an empty list is an error and a single call is encoded exactly as
    ``encode_call`` would.
    """

    kind: AccountKind
    display_name: str = "Smart account"

    def __init__(
        self,
        chain_id: int,
        entry_point_version: EntryPointVersion = EntryPointVersion.V07,
        public_client: Optional[Any] = None,
        address: Optional[Address] = None,
    ) -> None:
        self.chain_id = chain_id
        self.entry_point_version = entry_point_version
        self.public_client = public_client
        self._configured_address = Address.from_hex(address) if address is not None else None
        self._address = AddressCell()

    @property
    def entry_point(self) -> Address:
        return entry_point_address(self.entry_point_version)

    @property
    def nonce_key(self) -> int:
        return 0

    async def get_address(self) -> Address:
        """Counterfactual address, resolved through the EntryPoint at most once."""
        return await resolve_via_entry_point(
            self.display_name,
            self._address,
            self._configured_address,
            self.public_client,
            self.get_init_code,
            self.entry_point,
        )

    async def get_init_code(self) -> str:
        factory = await self.get_factory_data()
        if factory is None:
            return hexutil.EMPTY
        return factory.init_code

    @abstractmethod
    async def get_factory_data(self) -> Optional[FactoryData]:
        """Factory address and calldata, or None for accounts that are never deployed."""

    @abstractmethod
    def encode_call(self, call: Call) -> str:
        ...

    def encode_calls(self, calls: Sequence[Call]) -> str:
        if not calls:
            raise EmptyBatchError()
        if len(calls) == 1:
            return self.encode_call(calls[0])
        return self._encode_batch(list(calls))

    @abstractmethod
    def _encode_batch(self, calls: Sequence[Call]) -> str:
        """Encode two or more calls."""

    @abstractmethod
    def get_stub_signature(self) -> str:
        ...

    @abstractmethod
    async def sign_user_operation(self, user_op: UserOperationV07) -> str:
        ...

    @abstractmethod
    async def sign_message(self, message: str) -> str:
        ...

    @abstractmethod
    async def sign_typed_data(self, typed_data: TypedData) -> str:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(chain_id={self.chain_id}, entry_point={self.entry_point_version.value})"


class SmartAccountV06(ABC):
    """Accounts that can sign for EntryPoint v0.6."""

    @abstractmethod
    async def sign_user_operation_v06(self, user_op: UserOperationV06) -> str:
        ...


class Eip7702Account(ABC):
    """
    EOA delegated to account logic via EIP-7702.

    The account address is the owner's address and there is no factory; the
    first UserOperation carries a signed authorization instead.
    """

    is_eip7702 = True
    owner: AccountOwner
    chain_id: int
    public_client: Optional[Any]

    @property
    @abstractmethod
    def account_logic_address(self) -> Address:
        ...

    async def get_authorization(self, nonce: int) -> Eip7702Authorization:
        return await sign_authorization(self.owner, self.chain_id, self.account_logic_address, nonce)

    async def _ensure_delegated(self, account_label: str) -> None:
        """Message signatures are only verifiable (EIP-1271) once delegation is live."""
        if self.public_client is None:
            return
        if not await self.public_client.is_deployed(self.owner.address):
            raise UnsupportedOperationError(
                f"{account_label} is not EIP-1271 compliant before delegation. "
                "Submit a UserOperation with the EIP-7702 authorization first.",
            )
