from .address import Address, ZERO_ADDRESS, to_address
from .call import Call
from .eip7702 import EIP7702_FACTORY_MARKER, EIP7702_FACTORY_MARKER_SHORT, Eip7702Authorization
from .typed_data import TypedData, TypedDataDomain, TypedDataField
from .user_operation import (
    ENTRY_POINT_ADDRESSES,
    EntryPointVersion,
    UserOperation,
    UserOperationV06,
    UserOperationV07,
    entry_point_address,
)

__all__ = [
    "Address",
    "ZERO_ADDRESS",
    "to_address",
    "Call",
    "EIP7702_FACTORY_MARKER",
    "EIP7702_FACTORY_MARKER_SHORT",
    "Eip7702Authorization",
    "TypedData",
    "TypedDataDomain",
    "TypedDataField",
    "ENTRY_POINT_ADDRESSES",
    "EntryPointVersion",
    "UserOperation",
    "UserOperationV06",
    "UserOperationV07",
    "entry_point_address",
]
