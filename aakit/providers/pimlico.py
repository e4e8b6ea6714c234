"""
Pimlico bundler extensions: status, gas prices, ERC-20 paymaster quotes and
sponsorship policies.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Sequence

from .bundler import DEFAULT_RECEIPT_POLL_INTERVAL_S, DEFAULT_RECEIPT_TIMEOUT_S, BundlerClient
from .types import (
    PimlicoErc20PaymasterCost,
    PimlicoGasPrices,
    PimlicoSponsorshipPolicy,
    PimlicoSupportedToken,
    PimlicoTokenQuote,
    PimlicoUserOperationStatus,
)
from ..core.encoding import hexutil
from ..types.address import Address
from ..types.user_operation import UserOperationV07

logger = logging.getLogger(__name__)


def pack_user_operation_v07(user_op: UserOperationV07) -> Dict[str, Any]:
    """
    v0.7 JSON as Pimlico's extension methods expect it.

    Unlike ``to_json`` the factory and paymaster groups are emitted whole,
    with zero or ``0x`` defaults, whenever their address is set.
    """
    packed = {
        "sender": user_op.sender.hex,
        "nonce": hexutil.from_int(user_op.nonce),
        "callData": user_op.call_data,
        "callGasLimit": hexutil.from_int(user_op.call_gas_limit),
        "verificationGasLimit": hexutil.from_int(user_op.verification_gas_limit),
        "preVerificationGas": hexutil.from_int(user_op.pre_verification_gas),
        "maxFeePerGas": hexutil.from_int(user_op.max_fee_per_gas),
        "maxPriorityFeePerGas": hexutil.from_int(user_op.max_priority_fee_per_gas),
        "signature": user_op.signature,
    }
    if user_op.factory is not None:
        packed["factory"] = user_op.factory.hex
        packed["factoryData"] = user_op.factory_data or "0x"
    if user_op.paymaster is not None:
        packed["paymaster"] = user_op.paymaster.hex
        packed["paymasterVerificationGasLimit"] = hexutil.from_int(user_op.paymaster_verification_gas_limit or 0)
        packed["paymasterPostOpGasLimit"] = hexutil.from_int(user_op.paymaster_post_op_gas_limit or 0)
        packed["paymasterData"] = user_op.paymaster_data or "0x"
    return packed


class PimlicoClient(BundlerClient):
    name = "pimlico"

    async def get_user_operation_status(self, user_op_hash: str) -> PimlicoUserOperationStatus:
        result = await self.rpc_client.call("pimlico_getUserOperationStatus", [user_op_hash])
        return PimlicoUserOperationStatus.from_rpc(result)

    async def get_user_operation_gas_price(self) -> PimlicoGasPrices:
        result = await self.rpc_client.call("pimlico_getUserOperationGasPrice")
        return PimlicoGasPrices.from_rpc(result)

    async def send_compressed_user_operation(
        self,
        user_op: UserOperationV07,
        inflator: Address,
        compressed_calldata: str,
    ) -> str:
        return await self.rpc_client.call(
            "pimlico_sendCompressedUserOperation",
            [pack_user_operation_v07(user_op), self.entry_point.hex, compressed_calldata, inflator.hex],
        )

    async def wait_for_user_operation_status(
        self,
        user_op_hash: str,
        timeout: float = DEFAULT_RECEIPT_TIMEOUT_S,
        polling_interval: float = DEFAULT_RECEIPT_POLL_INTERVAL_S,
    ) -> PimlicoUserOperationStatus:
        """Poll until a terminal status; after ``timeout`` the latest status is returned."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            status = await self.get_user_operation_status(user_op_hash)
            if status.is_terminal:
                return status
            await asyncio.sleep(polling_interval)

        logger.info(f"UserOperation {user_op_hash} still pending after {timeout}s")
        return await self.get_user_operation_status(user_op_hash)

    async def get_token_quotes(self, tokens: Sequence[Address]) -> List[PimlicoTokenQuote]:
        chain_id = await self.chain_id()
        result = await self.rpc_client.call(
            "pimlico_getTokenQuotes",
            [{"tokens": [token.hex for token in tokens]}, self.entry_point.hex, hexutil.from_int(chain_id)],
        )
        return [PimlicoTokenQuote.from_rpc(quote) for quote in (result or {}).get("quotes", [])]

    async def get_supported_tokens(self) -> List[PimlicoSupportedToken]:
        result = await self.rpc_client.call("pimlico_getSupportedTokens", [])
        if isinstance(result, dict):
            result = result.get("tokens") or []
        return [PimlicoSupportedToken.from_rpc(token) for token in result or []]

    async def estimate_erc20_paymaster_cost(
        self,
        user_op: UserOperationV07,
        token: Address,
    ) -> PimlicoErc20PaymasterCost:
        result = await self.rpc_client.call(
            "pimlico_estimateErc20PaymasterCost",
            [pack_user_operation_v07(user_op), self.entry_point.hex, token.hex],
        )
        return PimlicoErc20PaymasterCost.from_rpc(result)

    async def validate_sponsorship_policies(
        self,
        user_op: UserOperationV07,
        sponsorship_policy_ids: Sequence[str],
    ) -> List[PimlicoSponsorshipPolicy]:
        if not sponsorship_policy_ids:
            return []

        result = await self.rpc_client.call(
            "pimlico_validateSponsorshipPolicies",
            [pack_user_operation_v07(user_op), self.entry_point.hex, list(sponsorship_policy_ids)],
        )
        return [PimlicoSponsorshipPolicy.from_rpc(policy) for policy in result or []]
