"""
Helpers for the token and account standards the accounts speak: ERC-7579,
Safe MultiSend, ERC-20 and 2D nonces.
"""

from .erc20 import (
    MAX_UINT256,
    Erc20Selectors,
    Erc20StorageSlots,
    StateDiff,
    StateOverride,
    decode_uint256_result,
    encode_allowance_call,
    encode_approve,
    encode_balance_of_call,
    encode_transfer,
    encode_transfer_from,
    erc20_allowance_override,
    erc20_balance_override,
    erc20_paymaster_override,
    merge_state_overrides,
    state_overrides_to_json,
)
from .erc7579 import (
    CallType,
    ExecutionMode,
    ModuleConfig,
    ModuleType,
    decode_7579_calls,
    encode_7579_calls,
    encode_7579_execute,
)
from .multisend import MultiSendCall, OperationType, decode_multi_send, encode_multi_send
from .nonce import DecodedNonce, decode_nonce, encode_nonce

__all__ = [
    "MAX_UINT256",
    "Erc20Selectors",
    "Erc20StorageSlots",
    "StateDiff",
    "StateOverride",
    "decode_uint256_result",
    "encode_allowance_call",
    "encode_approve",
    "encode_balance_of_call",
    "encode_transfer",
    "encode_transfer_from",
    "erc20_allowance_override",
    "erc20_balance_override",
    "erc20_paymaster_override",
    "merge_state_overrides",
    "state_overrides_to_json",
    "CallType",
    "ExecutionMode",
    "ModuleConfig",
    "ModuleType",
    "decode_7579_calls",
    "encode_7579_calls",
    "encode_7579_execute",
    "MultiSendCall",
    "OperationType",
    "decode_multi_send",
    "encode_multi_send",
    "DecodedNonce",
    "decode_nonce",
    "encode_nonce",
]
