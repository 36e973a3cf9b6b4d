"""Single-endpoint NEAR JSON-RPC client.

Requests go out with ``requests`` on a worker thread so the event loop is
never blocked. Each call opens its own connection; nothing is pinned between
calls.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Any

import requests

from ..constants import DEFAULT_RPC_CALL_TIMEOUT_SECONDS
from ..errors import AccountNotFoundError, RpcNetworkError, RpcServerError
from ..logger import TRACE, get_logger
from .base import BaseRpcProvider
from .endpoints import ProviderEndpoint

logger = get_logger(__name__)

# Handler error causes that depend on the node's sync state rather than on the
# request, so another provider may well answer.
TRANSIENT_CAUSES = frozenset(
    {
        "UNKNOWN_BLOCK",
        "NO_SYNCED_BLOCKS",
        "NOT_SYNCED_YET",
        "UNAVAILABLE_SHARD",
        "GARBAGE_COLLECTED_BLOCK",
        "TIMEOUT_ERROR",
        "INTERNAL_ERROR",
    }
)

_request_ids = itertools.count(1)


class JsonRpcProvider(BaseRpcProvider):
    """Talks to exactly one NEAR RPC endpoint."""

    def __init__(
        self,
        endpoint: ProviderEndpoint,
        *,
        timeout: float = DEFAULT_RPC_CALL_TIMEOUT_SECONDS,
    ):
        """Initialize the client.

        Args:
            endpoint: RPC endpoint to talk to
            timeout: HTTP timeout in seconds for a single request
        """
        self.endpoint = endpoint
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self.endpoint.url

    def _post(self, payload: dict[str, Any]) -> requests.Response:
        return requests.post(self.endpoint.url, json=payload, timeout=self.timeout)

    async def send(
        self, method: str, params: Any, *, account_id: str | None = None
    ) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(_request_ids),
            "method": method,
            "params": params,
        }
        logger.log(TRACE, "RPC %s -> %s %s", self.endpoint.url, method, params)

        try:
            response = await asyncio.to_thread(self._post, payload)
        except requests.RequestException as e:
            raise RpcNetworkError(
                f"{method} request to {self.endpoint.url} failed: {e}",
                url=self.endpoint.url,
            ) from e

        if not response.ok:
            raise RpcNetworkError(
                f"{method} request to {self.endpoint.url} returned HTTP {response.status_code}",
                url=self.endpoint.url,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RpcNetworkError(
                f"Malformed JSON from {self.endpoint.url}: {e}", url=self.endpoint.url
            ) from e

        if not isinstance(body, dict):
            raise RpcNetworkError(
                f"Unexpected payload type from {self.endpoint.url}: {type(body).__name__}",
                url=self.endpoint.url,
            )

        if body.get("error") is not None:
            self._raise_rpc_error(body["error"], account_id)

        if "result" not in body:
            raise RpcNetworkError(
                f"Response from {self.endpoint.url} has neither result nor error",
                url=self.endpoint.url,
            )

        result = body["result"]
        # Older nodes report query failures inside the result object
        if isinstance(result, dict) and isinstance(result.get("error"), str):
            self._raise_query_error(result["error"], account_id)
        return result

    def _raise_rpc_error(self, error: Any, account_id: str | None) -> None:
        if not isinstance(error, dict):
            raise RpcNetworkError(
                f"Malformed error from {self.endpoint.url}: {error!r}",
                url=self.endpoint.url,
            )

        cause = error.get("cause") or {}
        cause_name = cause.get("name") if isinstance(cause, dict) else None
        name = error.get("name")
        detail = error.get("data") or error.get("message") or "unknown error"

        if cause_name == "UNKNOWN_ACCOUNT":
            info = cause.get("info") or {}
            raise AccountNotFoundError(info.get("requested_account_id") or account_id)

        if name == "INTERNAL_ERROR" or cause_name in TRANSIENT_CAUSES:
            raise RpcNetworkError(
                f"{self.endpoint.url} failed with {cause_name or name}: {detail}",
                url=self.endpoint.url,
            )

        if cause_name is None and name is None:
            # Legacy error shape: only a message string
            self._raise_query_error(str(detail), account_id)

        raise RpcServerError(f"{cause_name or name}: {detail}", cause=cause_name)

    def _raise_query_error(self, message: str, account_id: str | None) -> None:
        if "does not exist while viewing" in message and account_id:
            raise AccountNotFoundError(account_id)
        raise RpcServerError(message)
