"""
Binary codecs: hex strings, Solidity ABI and RLP.
"""

from . import hexutil
from .abi import (
    decode_abi,
    encode_abi,
    encode_address,
    encode_bytes,
    encode_call,
    encode_function_call,
    encode_uint256,
    function_selector,
)
from .rlp import authorization_preimage, rlp_encode

__all__ = [
    "hexutil",
    "decode_abi",
    "encode_abi",
    "encode_address",
    "encode_bytes",
    "encode_call",
    "encode_function_call",
    "encode_uint256",
    "function_selector",
    "authorization_preimage",
    "rlp_encode",
]
