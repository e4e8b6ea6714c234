from .message_hash import (
    encode_type,
    hash_domain,
    hash_message,
    hash_struct,
    hash_typed_data,
    keccak256,
    keccak256_hex,
)
from .packed import (
    PackedUserOperation,
    get_account_gas_limits,
    get_gas_fees,
    get_init_code,
    get_packed_user_operation,
    get_paymaster_and_data,
    unpack_account_gas_limits,
    unpack_gas_fees,
    unpack_init_code,
    unpack_paymaster_and_data,
    unpack_user_operation,
)
from .user_op_hash import (
    get_user_operation_hash,
    get_user_operation_hash_v06,
    get_user_operation_hash_v07,
    get_user_operation_hash_v08,
    get_user_operation_typed_data_v08,
)

__all__ = [
    "encode_type",
    "hash_domain",
    "hash_message",
    "hash_struct",
    "hash_typed_data",
    "keccak256",
    "keccak256_hex",
    "PackedUserOperation",
    "get_account_gas_limits",
    "get_gas_fees",
    "get_init_code",
    "get_packed_user_operation",
    "get_paymaster_and_data",
    "unpack_account_gas_limits",
    "unpack_gas_fees",
    "unpack_init_code",
    "unpack_paymaster_and_data",
    "unpack_user_operation",
    "get_user_operation_hash",
    "get_user_operation_hash_v06",
    "get_user_operation_hash_v07",
    "get_user_operation_hash_v08",
    "get_user_operation_typed_data_v08",
]
