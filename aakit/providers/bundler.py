"""
ERC-4337 Bundler Provider.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Union

from .base import Provider
from .rpc import JsonRpcClient
from .types import UserOperationByHashResponse, UserOperationGasEstimate, UserOperationReceipt
from ..core.encoding import hexutil
from ..core.errors import NetworkError, RpcError
from ..core.standards.erc20 import StateOverride, state_overrides_to_json
from ..types.address import Address
from ..types.eip7702 import EIP7702_FACTORY_MARKER, EIP7702_FACTORY_MARKER_SHORT, Eip7702Authorization
from ..types.user_operation import UserOperation

logger = logging.getLogger(__name__)

StateOverrideParam = Union[Dict[str, Any], Sequence[StateOverride], None]

DEFAULT_RECEIPT_TIMEOUT_S = 60.0
DEFAULT_RECEIPT_POLL_INTERVAL_S = 2.0


def state_override_param(state_override: StateOverrideParam) -> Optional[Dict[str, Any]]:
    """Normalize a state override to the RPC ``{address: {...}}`` object."""
    if state_override is None:
        return None
    if isinstance(state_override, dict):
        return state_override
    return state_overrides_to_json(list(state_override))


def user_op_json_with_authorization(
    user_op: UserOperation,
    authorization_list: Sequence[Eip7702Authorization],
) -> Dict[str, Any]:
    """
    UserOperation JSON carrying ``eip7702Auth``.

    Bundlers take a single authorization object and expect the short
    ``0x7702`` factory marker instead of the padded address.
    """
    payload = user_op.to_json()
    if authorization_list:
        payload["eip7702Auth"] = authorization_list[0].to_rpc_format()
    factory = payload.get("factory")
    if isinstance(factory, str) and factory.lower() == EIP7702_FACTORY_MARKER.hex:
        payload["factory"] = EIP7702_FACTORY_MARKER_SHORT
    return payload


class BundlerClient(Provider):
    name = "bundler"

    def __init__(self, rpc_client: JsonRpcClient, entry_point: Address) -> None:
        self.rpc_client = rpc_client
        self.entry_point = entry_point
        self.timeout_s = rpc_client.timeout_s

    async def ready(self) -> bool:
        return await self.rpc_client.ready()

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "disabled", "reason": "Bundler not configured"}

        try:
            entry_points = await self.supported_entry_points()
            return {
                "status": "healthy",
                "entryPointSupported": self.entry_point in entry_points,
            }
        except (RpcError, NetworkError) as exc:
            return {"status": "error", "reason": str(exc)}

    async def send_user_operation(self, user_op: UserOperation) -> str:
        return await self.rpc_client.call(
            "eth_sendUserOperation",
            [user_op.to_json(), self.entry_point.hex],
        )

    async def send_user_operation_with_authorization(
        self,
        user_op: UserOperation,
        authorization_list: Sequence[Eip7702Authorization],
    ) -> str:
        return await self.rpc_client.call(
            "eth_sendUserOperation",
            [user_op_json_with_authorization(user_op, authorization_list), self.entry_point.hex],
        )

    async def estimate_user_operation_gas(
        self,
        user_op: UserOperation,
        state_override: StateOverrideParam = None,
    ) -> UserOperationGasEstimate:
        return await self._estimate(user_op.to_json(), state_override)

    async def estimate_user_operation_gas_with_authorization(
        self,
        user_op: UserOperation,
        authorization_list: Sequence[Eip7702Authorization],
        state_override: StateOverrideParam = None,
    ) -> UserOperationGasEstimate:
        return await self._estimate(
            user_op_json_with_authorization(user_op, authorization_list),
            state_override,
        )

    async def _estimate(
        self,
        user_op_json: Dict[str, Any],
        state_override: StateOverrideParam,
    ) -> UserOperationGasEstimate:
        params: List[Any] = [user_op_json, self.entry_point.hex]
        override = state_override_param(state_override)
        if override is not None:
            params.append(override)
        result = await self.rpc_client.call("eth_estimateUserOperationGas", params)
        return UserOperationGasEstimate.from_rpc(result)

    async def get_user_operation_by_hash(self, user_op_hash: str) -> Optional[UserOperationByHashResponse]:
        result = await self.rpc_client.call("eth_getUserOperationByHash", [user_op_hash])
        if not result:
            return None
        return UserOperationByHashResponse.from_rpc(result)

    async def get_user_operation_receipt(self, user_op_hash: str) -> Optional[UserOperationReceipt]:
        result = await self.rpc_client.call("eth_getUserOperationReceipt", [user_op_hash])
        if not result:
            return None
        return UserOperationReceipt.from_rpc(result)

    async def supported_entry_points(self) -> List[Address]:
        result = await self.rpc_client.call("eth_supportedEntryPoints")
        return [Address.from_hex(address) for address in result or []]

    async def chain_id(self) -> int:
        return hexutil.parse_int(await self.rpc_client.call("eth_chainId"))

    async def wait_for_user_operation_receipt(
        self,
        user_op_hash: str,
        timeout: float = DEFAULT_RECEIPT_TIMEOUT_S,
        polling_interval: float = DEFAULT_RECEIPT_POLL_INTERVAL_S,
    ) -> Optional[UserOperationReceipt]:
        """Poll until a receipt shows up; returns None once ``timeout`` elapses."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            receipt = await self.get_user_operation_receipt(user_op_hash)
            if receipt is not None:
                return receipt
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(polling_interval, remaining))

        logger.info(f"No receipt for UserOperation {user_op_hash} after {timeout}s")
        return None

    async def aclose(self) -> None:
        await self.rpc_client.aclose()
