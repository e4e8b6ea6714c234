"""
Gnosis Safe MultiSend packing.

Each transaction is packed as ``operation(1) || to(20) || value(32) ||
dataLength(32) || data`` and the concatenation is passed to
``multiSend(bytes)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Sequence

from ...types.address import Address
from ...types.call import Call
from ..encoding import hexutil
from ..encoding.abi import decode_abi, encode_call, function_selector
from ..errors import EmptyBatchError, ValidationError

MULTI_SEND_SELECTOR = function_selector("multiSend(bytes)")


class OperationType(IntEnum):
    CALL = 0
    DELEGATE_CALL = 1


@dataclass(frozen=True)
class MultiSendCall:
    to: Address
    value: int = 0
    data: str = "0x"
    operation: OperationType = OperationType.CALL


def _pack(call: MultiSendCall) -> str:
    return hexutil.concat([
        hexutil.from_int(int(call.operation), 1),
        call.to.hex,
        hexutil.from_int(call.value, 32),
        hexutil.from_int(hexutil.byte_length(call.data), 32),
        call.data,
    ])


def encode_multi_send_with_operations(calls: Sequence[MultiSendCall]) -> str:
    if not calls:
        raise EmptyBatchError("Cannot encode empty calls list")
    packed = hexutil.concat([_pack(call) for call in calls])
    return encode_call(MULTI_SEND_SELECTOR, ["bytes"], [packed])


def encode_multi_send(calls: Sequence[Call], operation: OperationType = OperationType.CALL) -> str:
    return encode_multi_send_with_operations(
        [MultiSendCall(to=c.to, value=c.value, data=c.data, operation=operation) for c in calls]
    )


def decode_multi_send(data: str) -> List[Call]:
    """Unpack ``multiSend(bytes)`` calldata back into calls (operations dropped)."""
    if hexutil.byte_length(data) < 68:
        raise ValidationError("Invalid MultiSend data")
    (transactions,) = decode_abi(["bytes"], hexutil.slice_hex(data, 4))
    raw = hexutil.decode(transactions)

    calls: List[Call] = []
    offset = 0
    while offset < len(raw):
        offset += 1
        to = Address(hexutil.encode(raw[offset:offset + 20]))
        offset += 20
        value = int.from_bytes(raw[offset:offset + 32], "big")
        offset += 32
        length = int.from_bytes(raw[offset:offset + 32], "big")
        offset += 32
        payload = raw[offset:offset + length]
        offset += length
        calls.append(Call(to=to, value=value, data=hexutil.encode(payload)))
    return calls
