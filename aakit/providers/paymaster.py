"""
ERC-7677 Paymaster Provider and UserOperation merge helpers.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .base import Provider
from .rpc import JsonRpcClient
from .types import PaymasterContext, PaymasterData, PaymasterStubData, SponsorUserOperationResult
from ..core.encoding import hexutil
from ..core.errors import NetworkError, RpcError
from ..types.address import Address
from ..types.user_operation import UserOperation, UserOperationV06, UserOperationV07


class PaymasterClient(Provider):
    name = "paymaster"

    def __init__(self, rpc_client: JsonRpcClient) -> None:
        self.rpc_client = rpc_client
        self.timeout_s = rpc_client.timeout_s

    async def ready(self) -> bool:
        return await self.rpc_client.ready()

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "disabled", "reason": "Paymaster not configured"}

        try:
            result = await self.rpc_client.call("eth_chainId")
            return {"status": "healthy", "chainId": result}
        except (RpcError, NetworkError) as exc:
            return {"status": "error", "reason": str(exc)}

    @staticmethod
    def _params(
        user_op: UserOperation,
        entry_point: Address,
        chain_id: Optional[int],
        context: Optional[PaymasterContext],
    ) -> List[Any]:
        params: List[Any] = [user_op.to_json(), entry_point.hex]
        if chain_id is not None:
            params.append(hexutil.from_int(chain_id))
        if context is not None:
            params.append(context.to_json())
        return params

    async def get_paymaster_stub_data(
        self,
        user_op: UserOperation,
        entry_point: Address,
        chain_id: int,
        context: Optional[PaymasterContext] = None,
    ) -> PaymasterStubData:
        result = await self.rpc_client.call(
            "pm_getPaymasterStubData",
            self._params(user_op, entry_point, chain_id, context),
        )
        return PaymasterStubData.from_rpc(result)

    async def get_paymaster_data(
        self,
        user_op: UserOperation,
        entry_point: Address,
        chain_id: int,
        context: Optional[PaymasterContext] = None,
    ) -> PaymasterData:
        result = await self.rpc_client.call(
            "pm_getPaymasterData",
            self._params(user_op, entry_point, chain_id, context),
        )
        return PaymasterData.from_rpc(result)

    async def sponsor_user_operation(
        self,
        user_op: UserOperation,
        entry_point: Address,
        context: Optional[PaymasterContext] = None,
    ) -> SponsorUserOperationResult:
        """Legacy single-step sponsorship; no chain id parameter."""
        result = await self.rpc_client.call(
            "pm_sponsorUserOperation",
            self._params(user_op, entry_point, None, context),
        )
        return SponsorUserOperationResult.from_rpc(result)

    async def aclose(self) -> None:
        await self.rpc_client.aclose()


def with_paymaster_stub(user_op: UserOperationV07, stub: PaymasterStubData) -> UserOperationV07:
    return user_op.copy_with(
        paymaster=stub.paymaster,
        paymaster_data=stub.paymaster_data,
        paymaster_verification_gas_limit=stub.paymaster_verification_gas_limit,
        paymaster_post_op_gas_limit=stub.paymaster_post_op_gas_limit,
    )


def with_paymaster_data(user_op: UserOperationV07, data: PaymasterData) -> UserOperationV07:
    return user_op.copy_with(
        paymaster=data.paymaster,
        paymaster_data=data.paymaster_data,
        paymaster_verification_gas_limit=data.paymaster_verification_gas_limit,
        paymaster_post_op_gas_limit=data.paymaster_post_op_gas_limit,
    )


def with_sponsorship(user_op: UserOperationV07, result: SponsorUserOperationResult) -> UserOperationV07:
    return user_op.copy_with(
        paymaster=result.paymaster,
        paymaster_data=result.paymaster_data,
        paymaster_verification_gas_limit=result.paymaster_verification_gas_limit,
        paymaster_post_op_gas_limit=result.paymaster_post_op_gas_limit,
        pre_verification_gas=result.pre_verification_gas,
        verification_gas_limit=result.verification_gas_limit,
        call_gas_limit=result.call_gas_limit,
    )


def with_paymaster_stub_v06(user_op: UserOperationV06, stub: PaymasterStubData) -> UserOperationV06:
    return user_op.copy_with(paymaster_and_data=hexutil.concat([stub.paymaster.hex, stub.paymaster_data]))


def with_paymaster_data_v06(user_op: UserOperationV06, data: PaymasterData) -> UserOperationV06:
    return user_op.copy_with(paymaster_and_data=hexutil.concat([data.paymaster.hex, data.paymaster_data]))


def with_sponsorship_v06(user_op: UserOperationV06, result: SponsorUserOperationResult) -> UserOperationV06:
    # copy_with skips None, so missing gas fields keep their current values
    return user_op.copy_with(
        paymaster_and_data=result.paymaster_and_data,
        pre_verification_gas=result.pre_verification_gas,
        verification_gas_limit=result.verification_gas_limit,
        call_gas_limit=result.call_gas_limit,
    )
