from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from eth_utils import to_checksum_address

from ..core.encoding import hexutil


@dataclass(frozen=True)
class Address:
    """
    20-byte account or contract address.

    Stored lowercase so equality and hashing ignore checksum casing; the
    EIP-55 form is derived on demand.
    """
    hex: str

    def __post_init__(self) -> None:
        clean = hexutil.strip_0x(self.hex)
        if len(clean) != 40 or not hexutil.is_valid(clean):
            raise ValueError(f"Invalid address: {self.hex}")
        object.__setattr__(self, "hex", "0x" + clean.lower())

    @classmethod
    def from_hex(cls, value: Union[str, "Address"]) -> "Address":
        if isinstance(value, Address):
            return value
        return cls(value)

    @property
    def checksum(self) -> str:
        return to_checksum_address(self.hex)

    @property
    def is_zero(self) -> bool:
        return self.hex == ZERO_ADDRESS.hex

    def as_bytes(self) -> bytes:
        return hexutil.decode(self.hex)

    def abi_encoded(self) -> str:
        """Left-padded to a 32-byte word."""
        return hexutil.pad_left(self.hex, 32)

    def __str__(self) -> str:
        return self.hex


ZERO_ADDRESS = Address("0x" + "00" * 20)


def to_address(value: Union[str, Address]) -> Address:
    return Address.from_hex(value)
