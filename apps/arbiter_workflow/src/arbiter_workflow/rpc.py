from __future__ import annotations

import itertools
from typing import Any

import httpx

from .errors import RpcError
from .observability import get_logger

logger = get_logger(__name__)


class JsonRpcClient:
    """Ethereum JSON-RPC over HTTP. Errors surface verbatim; nothing is retried."""

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._transport = transport
        self._ids = itertools.count(1)

    async def call(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.rpc_url, json=payload)
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPError as exc:
            raise RpcError(method, str(exc) or exc.__class__.__name__) from exc
        except ValueError as exc:
            raise RpcError(method, f"invalid JSON response: {exc}") from exc

        if not isinstance(body, dict):
            raise RpcError(method, "response is not a JSON object")
        error = body.get("error")
        if error:
            if isinstance(error, dict):
                raise RpcError(method, str(error.get("message", error)), code=error.get("code"))
            raise RpcError(method, str(error))
        if "result" not in body:
            raise RpcError(method, "response carries neither result nor error")

        logger.debug("rpc_call", method=method)
        return body["result"]

    async def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        return await self.call("eth_call", [{"to": to, "data": data}, block])

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return _quantity("eth_getTransactionCount", await self.call("eth_getTransactionCount", [address, block]))

    async def gas_price(self) -> int:
        return _quantity("eth_gasPrice", await self.call("eth_gasPrice", []))

    async def send_raw_transaction(self, raw_tx_hex: str) -> str:
        return str(await self.call("eth_sendRawTransaction", [raw_tx_hex]))


def _quantity(method: str, value: Any) -> int:
    try:
        return int(str(value), 16)
    except ValueError as exc:
        raise RpcError(method, f"expected a hex quantity, got {value!r}") from exc
