"""
Network collaborators: JSON-RPC transport plus bundler, paymaster, public
node and Pimlico clients.

The ``create_*`` factories fall back to ``aakit.config.settings`` for URLs,
chain id and timeouts when an argument is omitted.
"""

from typing import Dict, Optional, Type

import httpx

from ..config import settings
from ..core.errors import BundlerRpcError, ConfigurationError, PaymasterRpcError, PublicRpcError, RpcError
from ..types.address import Address
from ..types.user_operation import EntryPointVersion, entry_point_address
from .bundler import BundlerClient, state_override_param, user_op_json_with_authorization
from .paymaster import (
    PaymasterClient,
    with_paymaster_data,
    with_paymaster_data_v06,
    with_paymaster_stub,
    with_paymaster_stub_v06,
    with_sponsorship,
    with_sponsorship_v06,
)
from .pimlico import PimlicoClient, pack_user_operation_v07
from .public import PublicClient, parse_sender_address_revert
from .rpc import JsonRpcClient, RpcRequest
from .types import (
    FeeData,
    PaymasterContext,
    PaymasterData,
    PaymasterStubData,
    PimlicoErc20PaymasterCost,
    PimlicoGasPrice,
    PimlicoGasPrices,
    PimlicoSponsorshipPolicy,
    PimlicoSupportedToken,
    PimlicoTokenQuote,
    PimlicoUserOperationStatus,
    SponsorUserOperationResult,
    TransactionReceipt,
    UserOperationByHashResponse,
    UserOperationGasEstimate,
    UserOperationLog,
    UserOperationReceipt,
)

PIMLICO_RPC_URL = "https://api.pimlico.io/v2/{chain_id}/rpc?apikey={api_key}"


def create_rpc_client(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
    error_class: Type[RpcError] = RpcError,
) -> JsonRpcClient:
    if not url:
        raise ConfigurationError("An RPC URL is required")
    return JsonRpcClient(
        url=url,
        headers=headers,
        timeout=timeout if timeout is not None else settings.rpc_timeout_seconds,
        client=client,
        error_class=error_class,
    )


def _entry_point(entry_point: Optional[Address]) -> Address:
    if entry_point is not None:
        return entry_point
    return entry_point_address(EntryPointVersion.parse(settings.default_entry_point_version))


def create_bundler_client(
    url: Optional[str] = None,
    entry_point: Optional[Address] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> BundlerClient:
    rpc_client = create_rpc_client(url or settings.bundler_url, headers, timeout, client, BundlerRpcError)
    return BundlerClient(rpc_client, _entry_point(entry_point))


def create_paymaster_client(
    url: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> PaymasterClient:
    return PaymasterClient(
        create_rpc_client(url or settings.paymaster_url, headers, timeout, client, PaymasterRpcError)
    )


def create_public_client(
    url: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> PublicClient:
    return PublicClient(create_rpc_client(url or settings.rpc_url, headers, timeout, client, PublicRpcError))


def create_pimlico_client(
    url: Optional[str] = None,
    entry_point: Optional[Address] = None,
    chain_id: Optional[int] = None,
    api_key: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> PimlicoClient:
    """Pimlico client for ``url``, or the hosted endpoint built from the API key."""
    if not url:
        key = api_key or settings.pimlico_api_key
        if key:
            url = PIMLICO_RPC_URL.format(chain_id=chain_id or settings.chain_id, api_key=key)
        else:
            url = settings.bundler_url
    rpc_client = create_rpc_client(url, headers, timeout, client, BundlerRpcError)
    return PimlicoClient(rpc_client, _entry_point(entry_point))


__all__ = [
    "JsonRpcClient",
    "RpcRequest",
    "BundlerClient",
    "PaymasterClient",
    "PublicClient",
    "PimlicoClient",
    "create_rpc_client",
    "create_bundler_client",
    "create_paymaster_client",
    "create_public_client",
    "create_pimlico_client",
    "state_override_param",
    "user_op_json_with_authorization",
    "pack_user_operation_v07",
    "parse_sender_address_revert",
    "with_paymaster_stub",
    "with_paymaster_data",
    "with_sponsorship",
    "with_paymaster_stub_v06",
    "with_paymaster_data_v06",
    "with_sponsorship_v06",
    "FeeData",
    "PaymasterContext",
    "PaymasterData",
    "PaymasterStubData",
    "PimlicoErc20PaymasterCost",
    "PimlicoGasPrice",
    "PimlicoGasPrices",
    "PimlicoSponsorshipPolicy",
    "PimlicoSupportedToken",
    "PimlicoTokenQuote",
    "PimlicoUserOperationStatus",
    "SponsorUserOperationResult",
    "TransactionReceipt",
    "UserOperationByHashResponse",
    "UserOperationGasEstimate",
    "UserOperationLog",
    "UserOperationReceipt",
]
