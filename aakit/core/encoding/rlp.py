"""
RLP helpers for EIP-7702 authorization payloads.
"""

from __future__ import annotations

from typing import Any, List

import rlp as pyrlp

from . import hexutil

EIP7702_MAGIC = b"\x05"


def rlp_encode(items: List[Any]) -> bytes:
    """RLP-encode a list of ints and byte strings."""
    return pyrlp.encode(items)


def encode_authorization_tuple(chain_id: int, address: str, nonce: int) -> bytes:
    """``rlp([chain_id, address, nonce])`` with the address as 20 raw bytes."""
    return rlp_encode([chain_id, hexutil.decode(address), nonce])


def authorization_preimage(chain_id: int, address: str, nonce: int) -> bytes:
    return EIP7702_MAGIC + encode_authorization_tuple(chain_id, address, nonce)
