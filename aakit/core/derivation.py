"""
Counterfactual address derivation.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, Union

from ..types.address import Address
from .encoding import hexutil
from .errors import AddressResolutionError
from .hashing.message_hash import keccak256


def get_create2_address(factory: Address, salt: Union[str, bytes], init_code_hash: Union[str, bytes]) -> Address:
    """last20(keccak256(0xff || factory || salt || keccak256(initCode)))."""
    salt_bytes = salt if isinstance(salt, bytes) else hexutil.decode(hexutil.pad_left(salt, 32))
    hash_bytes = init_code_hash if isinstance(init_code_hash, bytes) else hexutil.decode(init_code_hash)
    if len(salt_bytes) != 32 or len(hash_bytes) != 32:
        raise ValueError("CREATE2 salt and init code hash must be 32 bytes")
    digest = keccak256(b"\xff" + factory.as_bytes() + salt_bytes + hash_bytes)
    return Address(hexutil.encode(digest[12:]))


class AddressCell:
    """
    Holds an account address that is resolved at most once.

    Empty until the first ``set``; after that the value is fixed and a
    different value is rejected.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Optional[Address] = None) -> None:
        self._value = value

    @property
    def is_resolved(self) -> bool:
        return self._value is not None

    def get(self) -> Optional[Address]:
        return self._value

    def set(self, value: Address) -> Address:
        if self._value is None:
            self._value = value
        elif self._value != value:
            raise ValueError(f"Address already resolved to {self._value}, refusing {value}")
        return self._value

    async def get_or_resolve(self, resolve: Callable[[], Awaitable[Address]]) -> Address:
        if self._value is None:
            self.set(await resolve())
        return self._value


async def resolve_via_entry_point(
    account_name: str,
    cell: AddressCell,
    address: Optional[Address],
    public_client: Optional[Any],
    init_code: Callable[[], Awaitable[str]],
    entry_point: Address,
) -> Address:
    """
    Cached value, then the configured address, then ``getSenderAddress`` over
    RPC. Raises AddressResolutionError when neither input was supplied.
    """
    cached = cell.get()
    if cached is not None:
        return cached
    if address is not None:
        return cell.set(address)
    if public_client is not None:
        resolved = await public_client.get_sender_address(
            init_code=await init_code(),
            entry_point=entry_point,
        )
        return cell.set(resolved)
    raise AddressResolutionError(account_name)
