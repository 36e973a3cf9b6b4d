"""Provider interface shared by single-endpoint and failover clients."""

from __future__ import annotations

import base64
import json
from abc import ABC, abstractmethod
from typing import Any

FINAL = {"finality": "final"}


class BaseRpcProvider(ABC):
    """Abstract NEAR JSON-RPC provider.

    Subclasses only implement ``send``; the typed read-only queries used for
    balance lookups are built on top of it.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable provider name for logs."""
        ...

    @abstractmethod
    async def send(
        self, method: str, params: Any, *, account_id: str | None = None
    ) -> Any:
        """Send one JSON-RPC request and return its ``result`` member.

        ``account_id`` names the account the request is about, so a missing
        account can be reported as ``AccountNotFoundError``.
        """
        ...

    async def view_account(self, account_id: str) -> dict[str, Any]:
        """Fetch account state (amount, locked, storage_usage, ...)."""
        return await self.send(
            "query",
            {"request_type": "view_account", "account_id": account_id, **FINAL},
            account_id=account_id,
        )

    async def protocol_config(self) -> dict[str, Any]:
        return await self.send("EXPERIMENTAL_protocol_config", dict(FINAL))

    async def block(self) -> dict[str, Any]:
        """Latest final block (header carries ``hash`` and ``epoch_id``)."""
        return await self.send("block", dict(FINAL))

    async def validators(self, epoch_id: str | None = None) -> dict[str, Any]:
        """Validator set of ``epoch_id``, or of the current epoch."""
        if epoch_id is None:
            return await self.send("validators", [None])
        return await self.send("validators", {"epoch_id": epoch_id})

    async def call_function(
        self,
        contract_id: str,
        method_name: str,
        args: dict[str, Any],
        *,
        block_id: str | int | None = None,
    ) -> Any:
        """Call a view method on a contract and decode its JSON result.

        Reads at ``block_id`` when given, else at the latest final block.
        """
        encoded = base64.b64encode(json.dumps(args).encode()).decode()
        at_block = dict(FINAL) if block_id is None else {"block_id": block_id}
        result = await self.send(
            "query",
            {
                "request_type": "call_function",
                "account_id": contract_id,
                "method_name": method_name,
                "args_base64": encoded,
                **at_block,
            },
            account_id=contract_id,
        )
        raw = bytes(result.get("result") or [])
        if not raw:
            return None
        return json.loads(raw.decode())
