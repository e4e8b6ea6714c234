"""
Solidity ABI encoding.

Types are given as canonical Solidity type strings (``address``, ``uint256``,
``bytes``, ``(address,bytes)[]`` ...). Dynamic members take a 32-byte offset
slot in the head and their payload goes to the tail; offsets are relative to
the start of the enclosing tuple or array body.

Values:
    address     Address, 0x hex string or 20 raw bytes
    uintN/intN  int
    bool        bool
    bytesN      0x hex string or bytes, right-padded to 32
    bytes       0x hex string or bytes
    string      str
    T[] / T[k]  list or tuple of T
    (T1,T2,..)  list or tuple with one value per component
"""

from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from eth_utils import keccak

from ..errors import AbiEncodingError
from . import hexutil

WORD = 32


def split_types(type_list: str) -> List[str]:
    """Split a comma separated type list, ignoring commas inside tuples."""
    parts: List[str] = []
    depth = 0
    current = ""
    for char in type_list:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += char
    if current.strip():
        parts.append(current.strip())
    return parts


def _array_parts(type_str: str) -> Tuple[str, int]:
    """``T[k]`` -> (T, k); ``T[]`` -> (T, -1)."""
    open_idx = type_str.rindex("[")
    size = type_str[open_idx + 1:-1]
    return type_str[:open_idx], int(size) if size else -1


def _tuple_components(type_str: str) -> List[str]:
    return split_types(type_str[1:-1])


def is_dynamic(type_str: str) -> bool:
    if type_str in ("bytes", "string"):
        return True
    if type_str.endswith("]"):
        base, size = _array_parts(type_str)
        return size < 0 or is_dynamic(base)
    if type_str.startswith("("):
        return any(is_dynamic(component) for component in _tuple_components(type_str))
    return False


def _as_bytes(value: Any, type_str: str) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        if not hexutil.is_valid(value):
            raise AbiEncodingError(f"Invalid hex for {type_str}: {value}")
        return hexutil.decode(value)
    raise AbiEncodingError(f"Cannot encode {type(value).__name__} as {type_str}")


def _address_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        raw = _as_bytes(value, "address")
    elif hasattr(value, "as_bytes"):
        raw = value.as_bytes()
    else:
        raise AbiEncodingError(f"Cannot encode {type(value).__name__} as address")
    if len(raw) != 20:
        raise AbiEncodingError(f"Address must be 20 bytes, got {len(raw)}")
    return raw


def _int_bits(type_str: str, prefix: str) -> int:
    suffix = type_str[len(prefix):]
    bits = int(suffix) if suffix else 256
    if bits % 8 or not 8 <= bits <= 256:
        raise AbiEncodingError(f"Invalid integer type: {type_str}")
    return bits


def _encode_static_word(type_str: str, value: Any) -> bytes:
    if type_str == "address":
        return _address_bytes(value).rjust(WORD, b"\x00")
    if type_str == "bool":
        return (1 if value else 0).to_bytes(WORD, "big")
    if type_str.startswith("uint"):
        bits = _int_bits(type_str, "uint")
        if not isinstance(value, int) or value < 0 or value >= 1 << bits:
            raise AbiEncodingError(f"{value!r} out of range for {type_str}")
        return value.to_bytes(WORD, "big")
    if type_str.startswith("int"):
        bits = _int_bits(type_str, "int")
        if not isinstance(value, int) or not -(1 << (bits - 1)) <= value < 1 << (bits - 1):
            raise AbiEncodingError(f"{value!r} out of range for {type_str}")
        return (value % (1 << 256)).to_bytes(WORD, "big")
    if type_str.startswith("bytes"):
        size = int(type_str[5:])
        raw = _as_bytes(value, type_str)
        if not 1 <= size <= 32 or len(raw) > size:
            raise AbiEncodingError(f"{len(raw)} bytes do not fit {type_str}")
        return raw.ljust(WORD, b"\x00")
    raise AbiEncodingError(f"Unsupported ABI type: {type_str}")


def _pad_to_word(data: bytes) -> bytes:
    remainder = len(data) % WORD
    if remainder:
        data += b"\x00" * (WORD - remainder)
    return data


def _encode_value(type_str: str, value: Any) -> bytes:
    if type_str in ("bytes", "string"):
        raw = value.encode("utf-8") if type_str == "string" else _as_bytes(value, type_str)
        return len(raw).to_bytes(WORD, "big") + _pad_to_word(raw)
    if type_str.endswith("]"):
        base, size = _array_parts(type_str)
        items = list(value)
        if size >= 0 and len(items) != size:
            raise AbiEncodingError(f"{type_str} expects {size} items, got {len(items)}")
        body = _encode_tuple([base] * len(items), items)
        if size < 0:
            return len(items).to_bytes(WORD, "big") + body
        return body
    if type_str.startswith("("):
        components = _tuple_components(type_str)
        return _encode_tuple(components, value)
    return _encode_static_word(type_str, value)


def _encode_tuple(types: Sequence[str], values: Sequence[Any]) -> bytes:
    values = list(values)
    if len(types) != len(values):
        raise AbiEncodingError(f"Expected {len(types)} values, got {len(values)}")

    encoded = [_encode_value(t, v) for t, v in zip(types, values)]
    head_size = sum(WORD if is_dynamic(t) else len(e) for t, e in zip(types, encoded))

    head = b""
    tail = b""
    for type_str, chunk in zip(types, encoded):
        if is_dynamic(type_str):
            head += (head_size + len(tail)).to_bytes(WORD, "big")
            tail += chunk
        else:
            head += chunk
    return head + tail


def encode_abi_bytes(types: Sequence[str], values: Sequence[Any]) -> bytes:
    return _encode_tuple(list(types), values)


def encode_abi(types: Sequence[str], values: Sequence[Any]) -> str:
    """``abi.encode(values...)`` as 0x hex."""
    return hexutil.encode(encode_abi_bytes(types, values))


def function_selector(signature: str) -> str:
    """First four bytes of keccak256(signature) as 0x hex."""
    return "0x" + keccak(text=signature)[:4].hex()


def signature_types(signature: str) -> List[str]:
    """Parameter types of ``name(t1,t2)``."""
    start = signature.index("(")
    return split_types(signature[start + 1:-1])


def encode_call(selector: str, types: Sequence[str], values: Sequence[Any]) -> str:
    return hexutil.concat([selector, encode_abi(types, values)])


def encode_function_call(signature: str, values: Sequence[Any]) -> str:
    return encode_call(function_selector(signature), signature_types(signature), values)


# Primitive helpers returning one 0x-prefixed word (or length-prefixed blob)

def encode_address(value: Any) -> str:
    return hexutil.encode(_encode_static_word("address", value))


def encode_uint256(value: int) -> str:
    return hexutil.encode(_encode_static_word("uint256", value))


def encode_bytes(value: Any) -> str:
    return hexutil.encode(_encode_value("bytes", value))


# Decoding

def _read_word(data: bytes, offset: int) -> bytes:
    word = data[offset:offset + WORD]
    if len(word) != WORD:
        raise AbiEncodingError("ABI data too short")
    return word


def _static_size(type_str: str) -> int:
    if type_str.endswith("]"):
        base, size = _array_parts(type_str)
        return size * _static_size(base)
    if type_str.startswith("("):
        return sum(_static_size(c) for c in _tuple_components(type_str))
    return WORD


def _decode_value(type_str: str, data: bytes, offset: int) -> Any:
    if type_str in ("bytes", "string"):
        length = int.from_bytes(_read_word(data, offset), "big")
        raw = data[offset + WORD:offset + WORD + length]
        return raw.decode("utf-8") if type_str == "string" else hexutil.encode(raw)
    if type_str.endswith("]"):
        base, size = _array_parts(type_str)
        if size < 0:
            size = int.from_bytes(_read_word(data, offset), "big")
            offset += WORD
        return _decode_tuple([base] * size, data, offset)
    if type_str.startswith("("):
        return tuple(_decode_tuple(_tuple_components(type_str), data, offset))

    word = _read_word(data, offset)
    if type_str == "address":
        return hexutil.encode(word[12:])
    if type_str == "bool":
        return int.from_bytes(word, "big") != 0
    if type_str.startswith("uint"):
        return int.from_bytes(word, "big")
    if type_str.startswith("int"):
        return int.from_bytes(word, "big", signed=True)
    if type_str.startswith("bytes"):
        return hexutil.encode(word[:int(type_str[5:])])
    raise AbiEncodingError(f"Unsupported ABI type: {type_str}")


def _decode_tuple(types: Sequence[str], data: bytes, base: int) -> List[Any]:
    values: List[Any] = []
    cursor = base
    for type_str in types:
        if is_dynamic(type_str):
            rel = int.from_bytes(_read_word(data, cursor), "big")
            values.append(_decode_value(type_str, data, base + rel))
            cursor += WORD
        else:
            values.append(_decode_value(type_str, data, cursor))
            cursor += _static_size(type_str)
    return values


def decode_abi(types: Sequence[str], data: str) -> Tuple[Any, ...]:
    return tuple(_decode_tuple(list(types), hexutil.decode(data), 0))
