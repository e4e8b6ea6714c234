"""
EIP-191 and EIP-712 hashing.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Set, Union

from eth_utils import keccak

from ...types.typed_data import TypedData, TypedDataDomain, TypedDataField
from ..encoding import hexutil
from ..encoding.abi import encode_abi_bytes


def keccak256(data: Union[bytes, str]) -> bytes:
    """keccak256 over raw bytes or a 0x hex string."""
    if isinstance(data, str):
        data = hexutil.decode(data)
    return keccak(data)


def keccak256_hex(data: Union[bytes, str]) -> str:
    return hexutil.encode(keccak256(data))


def hash_message(message: Union[str, bytes]) -> str:
    """EIP-191 personal message hash. ``str`` is taken as UTF-8 text."""
    payload = message.encode("utf-8") if isinstance(message, str) else message
    prefix = f"\x19Ethereum Signed Message:\n{len(payload)}".encode("utf-8")
    return hexutil.encode(keccak(prefix + payload))


def _field_list(fields: List[Any]) -> List[TypedDataField]:
    return [f if isinstance(f, TypedDataField) else TypedDataField(f["name"], f["type"]) for f in fields]


def _base_type(type_str: str) -> str:
    return type_str[:type_str.index("[")] if "[" in type_str else type_str


def _find_referenced_types(type_name: str, types: Mapping[str, List[TypedDataField]], found: Set[str]) -> None:
    if type_name in found or type_name not in types:
        return
    found.add(type_name)
    for f in types[type_name]:
        _find_referenced_types(_base_type(f.type), types, found)


def _format_type(type_name: str, fields: List[TypedDataField]) -> str:
    return f"{type_name}({','.join(f'{f.type} {f.name}' for f in fields)})"


def encode_type(primary_type: str, types: Mapping[str, List[TypedDataField]]) -> str:
    """Primary type string followed by every referenced struct, sorted by name."""
    if primary_type not in types:
        raise ValueError(f"Type {primary_type} not found in types")
    referenced: Set[str] = set()
    _find_referenced_types(primary_type, types, referenced)
    referenced.discard(primary_type)
    result = _format_type(primary_type, types[primary_type])
    for name in sorted(referenced):
        result += _format_type(name, types[name])
    return result


def type_hash(primary_type: str, types: Mapping[str, List[TypedDataField]]) -> bytes:
    return keccak(text=encode_type(primary_type, types))


def _encode_field(type_str: str, value: Any, types: Mapping[str, List[TypedDataField]]) -> bytes:
    if type_str.endswith("]"):
        base = type_str[:type_str.rindex("[")]
        return keccak(b"".join(_encode_field(base, item, types) for item in value))
    if type_str in types:
        return hash_struct_bytes(type_str, value, types)
    if type_str == "bytes":
        return keccak256(value)
    if type_str == "string":
        return keccak(text=value)
    return encode_abi_bytes([type_str], [value])


def hash_struct_bytes(
    primary_type: str,
    data: Mapping[str, Any],
    types: Mapping[str, List[TypedDataField]],
) -> bytes:
    encoded = type_hash(primary_type, types)
    for f in types[primary_type]:
        encoded += _encode_field(f.type, data.get(f.name), types)
    return keccak(encoded)


def hash_struct(
    primary_type: str,
    data: Mapping[str, Any],
    types: Mapping[str, List[Any]],
) -> str:
    normalized = {name: _field_list(fields) for name, fields in types.items()}
    return hexutil.encode(hash_struct_bytes(primary_type, data, normalized))


def hash_domain(domain: TypedDataDomain) -> str:
    """EIP-712 domain separator, built from the fields that are present."""
    types: Dict[str, List[TypedDataField]] = {"EIP712Domain": domain.fields()}
    return hexutil.encode(hash_struct_bytes("EIP712Domain", domain.values(), types))


def hash_typed_data(typed_data: TypedData) -> str:
    """keccak256(0x1901 || domainSeparator || hashStruct(message))."""
    domain_separator = hash_domain(typed_data.domain)
    struct_hash = hash_struct(typed_data.primary_type, typed_data.message, typed_data.types)
    return hexutil.encode(keccak256(hexutil.concat(["0x1901", domain_separator, struct_hash])))
