"""
ERC-7579 modular account execution and module management.

``execute(bytes32 mode, bytes executionData)`` takes a 32-byte mode word:
byte 0 is the call type, byte 1 the exec type, bytes 6..9 an optional
selector and bytes 10..31 an optional context. Single executions are packed
``to(20) || value(32) || data``; batches are ``abi.encode((address,uint256,bytes)[])``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence

from ...types.address import Address
from ...types.call import Call
from ..encoding import hexutil
from ..encoding.abi import decode_abi, encode_abi, encode_call
from ..errors import EmptyBatchError, ValidationError


class ModuleType(IntEnum):
    VALIDATOR = 1
    EXECUTOR = 2
    FALLBACK = 3
    HOOK = 4


class CallType(IntEnum):
    CALL = 0x00
    BATCH_CALL = 0x01
    DELEGATE_CALL = 0xFF


class ExecType(IntEnum):
    DEFAULT = 0x00
    TRY = 0x01


class Selectors:
    EXECUTE = "0xe9ae5c53"
    INSTALL_MODULE = "0x9517e29f"
    UNINSTALL_MODULE = "0xa4d6f1d2"
    IS_MODULE_INSTALLED = "0x6d61fe70"
    SUPPORTS_MODULE = "0x12d79da3"
    ACCOUNT_ID = "0x7b60424a"
    SUPPORTS_EXECUTION_MODE = "0xd03c7914"


@dataclass(frozen=True)
class ExecutionMode:
    call_type: CallType
    revert_on_error: bool = True
    selector: Optional[str] = None
    context: Optional[str] = None

    def encode(self) -> str:
        mode = bytearray(32)
        mode[0] = int(self.call_type)
        mode[1] = ExecType.DEFAULT if self.revert_on_error else ExecType.TRY
        if not hexutil.is_empty(self.selector):
            selector = hexutil.decode(self.selector)[:4]
            mode[6:6 + len(selector)] = selector
        if not hexutil.is_empty(self.context):
            context = hexutil.decode(self.context)[:22]
            mode[10:10 + len(context)] = context
        return hexutil.encode(bytes(mode))

    @classmethod
    def decode(cls, mode_hex: str) -> "ExecutionMode":
        mode = hexutil.decode(mode_hex).rjust(32, b"\x00")
        try:
            call_type = CallType(mode[0])
        except ValueError:
            raise ValidationError(f"Unknown call type: {mode[0]}")
        selector = hexutil.encode(mode[6:10]) if any(mode[6:10]) else None
        context = hexutil.encode(mode[10:32]) if any(mode[10:32]) else None
        return cls(
            call_type=call_type,
            revert_on_error=mode[1] == ExecType.DEFAULT,
            selector=selector,
            context=context,
        )


@dataclass(frozen=True)
class Decoded7579Calls:
    mode: ExecutionMode
    calls: List[Call]


def encode_execute_mode(call_type: CallType = CallType.CALL, exec_type: ExecType = ExecType.DEFAULT) -> str:
    mode = bytearray(32)
    mode[0] = int(call_type)
    mode[1] = int(exec_type)
    return hexutil.encode(bytes(mode))


def encode_single_execution(call: Call) -> str:
    return hexutil.concat([call.to.hex, hexutil.from_int(call.value, 32), call.data])


def encode_batch_execution(calls: Sequence[Call]) -> str:
    if not calls:
        raise EmptyBatchError("At least one call is required for batch execution")
    return encode_abi(
        ["(address,uint256,bytes)[]"],
        [[(call.to, call.value, call.data) for call in calls]],
    )


def encode_7579_execute(call: Call) -> str:
    return encode_call(
        Selectors.EXECUTE,
        ["bytes32", "bytes"],
        [encode_execute_mode(CallType.CALL), encode_single_execution(call)],
    )


def encode_7579_calls(calls: Sequence[Call]) -> str:
    """A single call goes through the single-call mode; more use batch mode."""
    if not calls:
        raise EmptyBatchError()
    if len(calls) == 1:
        return encode_7579_execute(calls[0])
    return encode_call(
        Selectors.EXECUTE,
        ["bytes32", "bytes"],
        [encode_execute_mode(CallType.BATCH_CALL), encode_batch_execution(calls)],
    )


def decode_7579_calls(call_data: str) -> Decoded7579Calls:
    clean = hexutil.strip_0x(call_data)
    if len(clean) < 136:
        raise ValidationError("Call data too short for ERC-7579 execute")
    selector = "0x" + clean[:8].lower()
    if selector != Selectors.EXECUTE:
        raise ValidationError(f"Invalid selector: expected {Selectors.EXECUTE}, got {selector}")

    mode_hex, execution = decode_abi(["bytes32", "bytes"], "0x" + clean[8:])
    mode = ExecutionMode.decode(mode_hex)
    if hexutil.is_empty(execution):
        return Decoded7579Calls(mode=mode, calls=[])

    if mode.call_type == CallType.BATCH_CALL:
        (items,) = decode_abi(["(address,uint256,bytes)[]"], execution)
        calls = [Call(to=to, value=value, data=data) for to, value, data in items]
        return Decoded7579Calls(mode=mode, calls=calls)

    raw = hexutil.strip_0x(execution)
    call = Call(
        to=Address("0x" + raw[:40]),
        value=int(raw[40:104], 16),
        data="0x" + raw[104:],
    )
    return Decoded7579Calls(mode=mode, calls=[call])


# Module management

@dataclass(frozen=True)
class ModuleConfig:
    """A module to install (``data`` is initData) or uninstall (deInitData)."""
    type: ModuleType
    address: Address
    data: str = "0x"


def _module_call(selector: str, module_type: ModuleType, module: Address, data: str) -> str:
    return encode_call(selector, ["uint256", "address", "bytes"], [int(module_type), module, data])


def encode_install_module(module_type: ModuleType, module: Address, init_data: str = "0x") -> str:
    return _module_call(Selectors.INSTALL_MODULE, module_type, module, init_data)


def encode_uninstall_module(module_type: ModuleType, module: Address, de_init_data: str = "0x") -> str:
    return _module_call(Selectors.UNINSTALL_MODULE, module_type, module, de_init_data)


def encode_is_module_installed(module_type: ModuleType, module: Address, additional_context: str = "0x") -> str:
    return _module_call(Selectors.IS_MODULE_INSTALLED, module_type, module, additional_context)


def encode_supports_module(module_type: ModuleType) -> str:
    return encode_call(Selectors.SUPPORTS_MODULE, ["uint256"], [int(module_type)])


def encode_supports_execution_mode(mode: ExecutionMode) -> str:
    return hexutil.concat([Selectors.SUPPORTS_EXECUTION_MODE, mode.encode()])


def encode_account_id() -> str:
    return Selectors.ACCOUNT_ID


def decode_bool_result(result: str) -> bool:
    if hexutil.is_empty(result):
        return False
    return hexutil.to_int(result) != 0


def decode_string_result(result: str) -> str:
    """ABI ``string`` return value; anything shorter than offset+length is ''."""
    clean = hexutil.strip_0x(result or "")
    if len(clean) < 128:
        return ""
    length = int(clean[64:128], 16)
    if length == 0:
        return ""
    return bytes.fromhex(clean[128:128 + length * 2]).decode("utf-8", errors="replace")
