"""
High-level actions on top of SmartAccountClient: plain transactions,
contract writes, EIP-5792 style call batches and ERC-7579 module management.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from ...providers.public import PublicClient
from ...providers.types import UserOperationReceipt
from ...types.address import Address
from ...types.call import Call
from ..encoding.abi import encode_function_call
from ..errors import RpcError, ValidationError
from ..standards.erc7579 import (
    ExecutionMode,
    ModuleConfig,
    ModuleType,
    decode_bool_result,
    decode_string_result,
    encode_account_id,
    encode_install_module,
    encode_is_module_installed,
    encode_supports_execution_mode,
    encode_supports_module,
    encode_uninstall_module,
)
from .models import CallReceipt, CallsStatus, CallsStatusType
from .smart_account_client import SmartAccountClient

logger = logging.getLogger(__name__)


async def send_transaction(
    client: SmartAccountClient,
    to: Address,
    max_fee_per_gas: int,
    max_priority_fee_per_gas: int,
    value: int = 0,
    data: str = "0x",
    nonce: Optional[int] = None,
    timeout: Optional[float] = None,
) -> str:
    """Send one call and wait; returns the bundle tx hash, or the userOp hash if no receipt arrived."""
    user_op_hash = await client.send_user_operation(
        [Call(to=to, value=value, data=data)],
        max_fee_per_gas,
        max_priority_fee_per_gas,
        nonce=nonce,
    )
    receipt = await client.wait_for_receipt(user_op_hash, timeout=timeout)
    if receipt is not None and receipt.transaction_hash:
        return receipt.transaction_hash
    return user_op_hash


async def write_contract(
    client: SmartAccountClient,
    address: Address,
    function_signature: str,
    max_fee_per_gas: int,
    max_priority_fee_per_gas: int,
    args: Sequence[Any] = (),
    value: int = 0,
    nonce: Optional[int] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Call ``function_signature`` (e.g. ``transfer(address,uint256)``) on ``address``.

    Arguments are ABI-encoded from the types in the signature.
    """
    return await send_transaction(
        client,
        to=address,
        max_fee_per_gas=max_fee_per_gas,
        max_priority_fee_per_gas=max_priority_fee_per_gas,
        value=value,
        data=encode_function_call(function_signature, list(args)),
        nonce=nonce,
        timeout=timeout,
    )


async def send_calls(
    client: SmartAccountClient,
    calls: Sequence[Call],
    max_fee_per_gas: int,
    max_priority_fee_per_gas: int,
    nonce: Optional[int] = None,
) -> str:
    """Submit ``calls`` as one atomic UserOperation; the userOp hash is the batch id."""
    return await client.send_user_operation(calls, max_fee_per_gas, max_priority_fee_per_gas, nonce=nonce)


async def get_calls_status(client: SmartAccountClient, id: str) -> CallsStatus:
    try:
        receipt = await client.bundler.get_user_operation_receipt(id)
    except RpcError as exc:
        logger.debug(f"Receipt lookup for {id} failed, reporting pending: {exc}")
        receipt = None

    if receipt is None:
        return CallsStatus(id=id, chain_id=client.account.chain_id, status=CallsStatusType.PENDING)

    return CallsStatus(
        id=id,
        chain_id=client.account.chain_id,
        status=CallsStatusType.SUCCESS if receipt.success else CallsStatusType.FAILURE,
        receipts=[CallReceipt.from_transaction_receipt(receipt.receipt)] if receipt.receipt else None,
    )


# ERC-7579 module management

async def _self_calls(client: SmartAccountClient, call_data: List[str]) -> List[Call]:
    account_address = await client.get_address()
    return [Call(to=account_address, data=data) for data in call_data]


async def install_module(
    client: SmartAccountClient,
    module_type: ModuleType,
    address: Address,
    max_fee_per_gas: int,
    max_priority_fee_per_gas: int,
    init_data: str = "0x",
    nonce: Optional[int] = None,
) -> str:
    return await install_modules(
        client,
        [ModuleConfig(module_type, address, init_data)],
        max_fee_per_gas,
        max_priority_fee_per_gas,
        nonce=nonce,
    )


async def install_modules(
    client: SmartAccountClient,
    modules: Sequence[ModuleConfig],
    max_fee_per_gas: int,
    max_priority_fee_per_gas: int,
    nonce: Optional[int] = None,
) -> str:
    if not modules:
        raise ValidationError("At least one module is required")
    calls = await _self_calls(
        client, [encode_install_module(module.type, module.address, module.data) for module in modules]
    )
    return await client.send_user_operation(calls, max_fee_per_gas, max_priority_fee_per_gas, nonce=nonce)


async def uninstall_module(
    client: SmartAccountClient,
    module_type: ModuleType,
    address: Address,
    max_fee_per_gas: int,
    max_priority_fee_per_gas: int,
    de_init_data: str = "0x",
    nonce: Optional[int] = None,
) -> str:
    return await uninstall_modules(
        client,
        [ModuleConfig(module_type, address, de_init_data)],
        max_fee_per_gas,
        max_priority_fee_per_gas,
        nonce=nonce,
    )


async def uninstall_modules(
    client: SmartAccountClient,
    modules: Sequence[ModuleConfig],
    max_fee_per_gas: int,
    max_priority_fee_per_gas: int,
    nonce: Optional[int] = None,
) -> str:
    if not modules:
        raise ValidationError("At least one module is required")
    calls = await _self_calls(
        client, [encode_uninstall_module(module.type, module.address, module.data) for module in modules]
    )
    return await client.send_user_operation(calls, max_fee_per_gas, max_priority_fee_per_gas, nonce=nonce)


async def install_module_and_wait(
    client: SmartAccountClient,
    module_type: ModuleType,
    address: Address,
    max_fee_per_gas: int,
    max_priority_fee_per_gas: int,
    init_data: str = "0x",
    nonce: Optional[int] = None,
    timeout: Optional[float] = None,
) -> Optional[UserOperationReceipt]:
    user_op_hash = await install_module(
        client, module_type, address, max_fee_per_gas, max_priority_fee_per_gas, init_data, nonce
    )
    return await client.wait_for_receipt(user_op_hash, timeout=timeout)


async def uninstall_module_and_wait(
    client: SmartAccountClient,
    module_type: ModuleType,
    address: Address,
    max_fee_per_gas: int,
    max_priority_fee_per_gas: int,
    de_init_data: str = "0x",
    nonce: Optional[int] = None,
    timeout: Optional[float] = None,
) -> Optional[UserOperationReceipt]:
    user_op_hash = await uninstall_module(
        client, module_type, address, max_fee_per_gas, max_priority_fee_per_gas, de_init_data, nonce
    )
    return await client.wait_for_receipt(user_op_hash, timeout=timeout)


# ERC-7579 read-only queries against a deployed account

async def is_module_installed(
    public_client: PublicClient,
    account: Address,
    module_type: ModuleType,
    module: Address,
    additional_context: str = "0x",
) -> bool:
    result = await public_client.call(
        Call(to=account, data=encode_is_module_installed(module_type, module, additional_context))
    )
    return decode_bool_result(result)


async def supports_module(public_client: PublicClient, account: Address, module_type: ModuleType) -> bool:
    result = await public_client.call(Call(to=account, data=encode_supports_module(module_type)))
    return decode_bool_result(result)


async def supports_execution_mode(public_client: PublicClient, account: Address, mode: ExecutionMode) -> bool:
    result = await public_client.call(Call(to=account, data=encode_supports_execution_mode(mode)))
    return decode_bool_result(result)


async def get_account_id(public_client: PublicClient, account: Address) -> str:
    result = await public_client.call(Call(to=account, data=encode_account_id()))
    return decode_string_result(result)


async def get_installed_modules_of_type(
    public_client: PublicClient,
    account: Address,
    module_type: ModuleType,
    candidate_modules: Sequence[Address],
) -> List[Address]:
    """ERC-7579 has no enumeration; check each candidate in turn."""
    installed = []
    for module in candidate_modules:
        if await is_module_installed(public_client, account, module_type, module):
            installed.append(module)
    return installed
