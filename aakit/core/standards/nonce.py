"""
ERC-4337 two-dimensional nonces: a 192-bit key and a 64-bit sequence.
"""

from __future__ import annotations

from dataclasses import dataclass

_SEQUENCE_MASK = (1 << 64) - 1
_KEY_MASK = (1 << 192) - 1


@dataclass(frozen=True)
class DecodedNonce:
    key: int
    sequence: int


def decode_nonce(nonce: int) -> DecodedNonce:
    return DecodedNonce(key=nonce >> 64, sequence=nonce & _SEQUENCE_MASK)


def encode_nonce(key: int, sequence: int) -> int:
    return ((key & _KEY_MASK) << 64) + (sequence & _SEQUENCE_MASK)
