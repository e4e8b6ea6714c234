"""
Public Ethereum node client: chain reads and EntryPoint views.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .base import Provider
from .rpc import JsonRpcClient
from .types import FeeData
from ..core.encoding import hexutil
from ..core.encoding.abi import encode_call
from ..core.errors import NetworkError, PublicRpcError, RpcError
from ..types.address import Address
from ..types.call import Call

logger = logging.getLogger(__name__)

GET_NONCE_SELECTOR = "0x35567e1a"
GET_SENDER_ADDRESS_SELECTOR = "0x9b249f69"
SENDER_ADDRESS_RESULT_SELECTOR = "6ca7b806"


def parse_sender_address_revert(data: Any) -> Optional[Address]:
    """Extract the address from ``SenderAddressResult(address)`` revert data."""
    text = str(data) if data is not None else ""
    if len(text) >= 74 and text.startswith("0x" + SENDER_ADDRESS_RESULT_SELECTOR):
        return Address.from_hex("0x" + text[34:74])

    # Some nodes wrap the revert data in a longer message
    index = text.find(SENDER_ADDRESS_RESULT_SELECTOR)
    if index != -1 and len(text) >= index + 72:
        return Address.from_hex("0x" + text[index + 32:index + 72])
    return None


class PublicClient(Provider):
    name = "public"

    def __init__(self, rpc_client: JsonRpcClient) -> None:
        self.rpc_client = rpc_client
        self.timeout_s = rpc_client.timeout_s

    async def ready(self) -> bool:
        return await self.rpc_client.ready()

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "disabled", "reason": "RPC URL not configured"}

        try:
            chain_id = await self.get_chain_id()
            return {"status": "healthy", "chainId": chain_id}
        except (RpcError, NetworkError) as exc:
            return {"status": "error", "reason": str(exc)}

    async def get_code(self, address: Address, block_tag: str = "latest") -> str:
        return await self.rpc_client.call("eth_getCode", [address.hex, block_tag])

    async def is_deployed(self, address: Address) -> bool:
        code = await self.get_code(address)
        return bool(code) and code != "0x"

    async def get_balance(self, address: Address, block_tag: str = "latest") -> int:
        return hexutil.parse_int(await self.rpc_client.call("eth_getBalance", [address.hex, block_tag]))

    async def call(self, call: Call, block_tag: str = "latest") -> str:
        tx: Dict[str, Any] = {"to": call.to.hex, "data": call.data}
        if call.value:
            tx["value"] = hexutil.from_int(call.value)
        return await self.rpc_client.call("eth_call", [tx, block_tag])

    async def get_transaction_count(self, address: Address, block_tag: str = "latest") -> int:
        """EOA nonce. Smart account nonces come from ``get_account_nonce``."""
        return hexutil.parse_int(
            await self.rpc_client.call("eth_getTransactionCount", [address.hex, block_tag])
        )

    async def get_gas_price(self) -> int:
        return hexutil.parse_int(await self.rpc_client.call("eth_gasPrice"))

    async def get_max_priority_fee_per_gas(self) -> int:
        return hexutil.parse_int(await self.rpc_client.call("eth_maxPriorityFeePerGas"))

    async def get_chain_id(self) -> int:
        return hexutil.parse_int(await self.rpc_client.call("eth_chainId"))

    async def get_fee_data(self) -> FeeData:
        gas_price = await self.get_gas_price()
        try:
            priority_fee: Optional[int] = await self.get_max_priority_fee_per_gas()
        except RpcError as exc:
            logger.debug(f"eth_maxPriorityFeePerGas unavailable: {exc}")
            priority_fee = None
        return FeeData(gas_price=gas_price, max_priority_fee_per_gas=priority_fee)

    async def get_account_nonce(self, account: Address, entry_point: Address, nonce_key: int = 0) -> int:
        """``EntryPoint.getNonce(address, uint192)``."""
        data = encode_call(GET_NONCE_SELECTOR, ["address", "uint192"], [account, nonce_key])
        return hexutil.parse_int(await self.call(Call(to=entry_point, data=data)))

    async def get_sender_address(self, init_code: str, entry_point: Address) -> Address:
        """
        Counterfactual address via ``EntryPoint.getSenderAddress(bytes)``.

        The EntryPoint always reverts with ``SenderAddressResult(address)``;
        the address is read from the revert data.
        """
        data = encode_call(GET_SENDER_ADDRESS_SELECTOR, ["bytes"], [init_code])
        try:
            await self.call(Call(to=entry_point, data=data))
        except RpcError as exc:
            address = parse_sender_address_revert(exc.data)
            if address is not None:
                return address
            raise PublicRpcError(code=exc.code, message=exc.message, data=exc.data) from exc

        raise PublicRpcError(code=-1, message="getSenderAddress did not revert as expected")

    async def aclose(self) -> None:
        await self.rpc_client.aclose()
