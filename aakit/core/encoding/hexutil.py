"""
0x-prefixed hex string helpers.

All byte payloads in aakit travel as lowercase-or-mixed 0x hex strings; these
helpers convert, pad, join and slice them. Lengths are in bytes.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

EMPTY = "0x"
ZERO_20 = "0x" + "00" * 20
ZERO_32 = "0x" + "00" * 32

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


def strip_0x(value: str) -> str:
    if value.startswith(("0x", "0X")):
        return value[2:]
    return value


def add_0x(value: str) -> str:
    if value.startswith(("0x", "0X")):
        return value
    return f"0x{value}"


def decode(value: str) -> bytes:
    """Hex string to bytes. Odd-length input is left-padded with a zero nibble."""
    clean = strip_0x(value)
    if len(clean) % 2:
        clean = "0" + clean
    return bytes.fromhex(clean)


def encode(data: bytes) -> str:
    return "0x" + data.hex()


def pad_left(value: str, byte_length: int) -> str:
    clean = strip_0x(value)
    return "0x" + clean.rjust(byte_length * 2, "0")


def pad_right(value: str, byte_length: int) -> str:
    clean = strip_0x(value)
    return "0x" + clean.ljust(byte_length * 2, "0")


def concat(parts: Iterable[str]) -> str:
    return "0x" + "".join(strip_0x(p) for p in parts)


def byte_length(value: str) -> int:
    return len(strip_0x(value)) // 2


def slice_hex(value: str, start: int, end: Optional[int] = None) -> str:
    clean = strip_0x(value)
    stop = end * 2 if end is not None else len(clean)
    return "0x" + clean[start * 2:stop]


def from_int(value: int, byte_length: Optional[int] = None) -> str:
    """Minimal hex for ``value`` (``0x0`` for zero) or fixed width when ``byte_length`` is given."""
    if value < 0:
        raise ValueError("Value must be non-negative")
    digits = format(value, "x")
    if byte_length is not None:
        if len(digits) > byte_length * 2:
            raise ValueError(f"{value} does not fit in {byte_length} bytes")
        digits = digits.rjust(byte_length * 2, "0")
    return f"0x{digits}"


def to_int(value: str) -> int:
    clean = strip_0x(value)
    if not clean:
        return 0
    return int(clean, 16)


def parse_int(value) -> int:
    """Accept RPC quantities as hex strings, decimal strings or ints."""
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    text = str(value)
    if text.startswith(("0x", "0X")):
        return to_int(text)
    return int(text)


def is_valid(value: str) -> bool:
    return bool(_HEX_RE.match(strip_0x(value)))


def is_empty(value: Optional[str]) -> bool:
    return value is None or strip_0x(value) == ""
