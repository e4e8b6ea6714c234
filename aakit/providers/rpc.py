"""
JSON-RPC 2.0 transport over httpx.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

import httpx

from .base import Provider
from ..core.errors import NetworkError, RpcError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RpcRequest:
    method: str
    params: List[Any] = field(default_factory=list)


class JsonRpcClient(Provider):
    """
    Minimal JSON-RPC client.

    Request ids increase monotonically per client. HTTP failures and
    ``error`` members are raised as ``error_class`` (an ``RpcError``
    subclass chosen by the owning client); transport failures become
    ``NetworkError``.
    """

    name = "rpc"

    def __init__(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30,
        client: Optional[httpx.AsyncClient] = None,
        error_class: Type[RpcError] = RpcError,
    ) -> None:
        self.url = url
        self.headers = dict(headers or {})
        self.timeout_s = timeout
        self.error_class = error_class
        self._client = client
        self._request_id = 0

    async def ready(self) -> bool:
        return bool(self.url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "disabled", "reason": "No RPC URL configured"}

        try:
            result = await self.call("eth_chainId")
            return {"status": "healthy", "chainId": result}
        except (RpcError, NetworkError) as exc:
            return {"status": "error", "reason": str(exc)}

    def _get_client(self) -> httpx.AsyncClient:
        if not self._client or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def _post(self, body: Any) -> httpx.Response:
        try:
            response = await self._get_client().post(
                self.url,
                json=body,
                headers={"Content-Type": "application/json", **self.headers},
            )
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request to {self.url} failed: {exc}", provider=self.error_class.provider) from exc

        if response.status_code != 200:
            raise self.error_class(
                code=response.status_code,
                message=f"HTTP error: {response.reason_phrase}",
                data=response.text,
            )
        return response

    def _raise_for_error(self, payload: Dict[str, Any]) -> None:
        error = payload.get("error")
        if error is None:
            return
        if not isinstance(error, dict):
            raise self.error_class(code=-1, message=str(error))
        raise self.error_class(
            code=int(error.get("code", -1)),
            message=str(error.get("message", "")),
            data=error.get("data"),
        )

    async def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        request_id = self._next_id()
        logger.debug(f"{self.error_class.provider} rpc -> {method} (id={request_id})")
        response = await self._post(
            {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params or []}
        )
        payload = response.json()
        self._raise_for_error(payload)
        return payload.get("result")

    async def batch(self, requests: List[RpcRequest]) -> List[Any]:
        """Send several requests in one POST; results come back in request order."""
        if not requests:
            return []

        ids = []
        body = []
        for request in requests:
            request_id = self._next_id()
            ids.append(request_id)
            body.append(
                {"jsonrpc": "2.0", "id": request_id, "method": request.method, "params": request.params}
            )
        logger.debug(f"{self.error_class.provider} rpc batch -> {[r.method for r in requests]}")

        response = await self._post(body)
        results: Dict[int, Any] = {}
        for item in response.json():
            self._raise_for_error(item)
            results[int(item["id"])] = item.get("result")
        return [results.get(request_id) for request_id in ids]

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
