"""
Account owners: the signer capability every smart account delegates to.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Tuple

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys import keys

from ...types.address import Address
from ...types.typed_data import TypedData
from ..encoding import hexutil
from ..hashing.message_hash import hash_typed_data


class AccountOwner(ABC):
    """
    Signer behind a smart account.

    Signatures are 65 bytes ``r || s || v`` with ``v`` in {27, 28}. Implement
    this for hardware wallets, KMS keys or remote signers.
    """

    @property
    @abstractmethod
    def address(self) -> Address:
        ...

    @abstractmethod
    async def sign_personal_message(self, hash: str) -> str:
        """EIP-191 sign the 32 raw bytes of ``hash``."""

    @abstractmethod
    async def sign_raw_hash(self, hash: str) -> str:
        """Sign ``hash`` directly, with no prefix."""

    @abstractmethod
    async def sign_typed_data(self, typed_data: TypedData) -> str:
        """Sign the EIP-712 digest of ``typed_data``."""


class PrivateKeyOwner(AccountOwner):
    """AccountOwner backed by an in-memory secp256k1 key."""

    def __init__(self, private_key: str) -> None:
        self._account = Account.from_key(private_key)
        self._address = Address.from_hex(self._account.address)

    @property
    def address(self) -> Address:
        return self._address

    @property
    def public_key(self) -> bytes:
        """Uncompressed public key without the 0x04 prefix (64 bytes)."""
        return keys.PrivateKey(bytes(self._account.key)).public_key.to_bytes()

    async def sign_personal_message(self, hash: str) -> str:
        signed = self._account.sign_message(encode_defunct(primitive=hexutil.decode(hash)))
        return hexutil.encode(bytes(signed.signature))

    async def sign_raw_hash(self, hash: str) -> str:
        signed = self._account.unsafe_sign_hash(hexutil.decode(hash))
        return _pack_signature(signed.v, signed.r, signed.s)

    async def sign_typed_data(self, typed_data: TypedData) -> str:
        return await self.sign_raw_hash(hash_typed_data(typed_data))


def _pack_signature(v: int, r: int, s: int) -> str:
    if v < 27:
        v += 27
    return hexutil.concat([hexutil.from_int(r, 32), hexutil.from_int(s, 32), hexutil.from_int(v, 1)])


def split_signature(signature: str) -> Tuple[int, int, int]:
    """65-byte ``r || s || v`` into ``(v, r, s)``."""
    raw = hexutil.decode(signature)
    if len(raw) != 65:
        raise ValueError(f"Expected a 65-byte signature, got {len(raw)} bytes")
    r = int.from_bytes(raw[:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    v = raw[64]
    return v, r, s


def recover_address(hash: str, v: int, r: int, s: int) -> Address:
    """Recover the signer of a raw 32-byte hash."""
    recovery_id = v - 27 if v >= 27 else v
    signature = keys.Signature(vrs=(recovery_id, r, s))
    public_key = signature.recover_public_key_from_msg_hash(hexutil.decode(hash))
    return Address.from_hex(public_key.to_checksum_address())
