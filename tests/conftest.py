from __future__ import annotations

import base64
import json
from typing import Any

import pytest

from near_balance.clients.base import BaseRpcProvider
from near_balance.errors import AccountNotFoundError, RpcNetworkError, RpcServerError
from near_balance.settings import BalanceSettings


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep developer config files and env vars out of the tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("NEAR_BALANCE_CONFIG", raising=False)
    for name in (
        "NEAR_BALANCE_NETWORK",
        "NEAR_BALANCE_RPC_URLS",
        "NEAR_BALANCE_REQUEST_TIMEOUT_SECONDS",
        "NEAR_BALANCE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings():
    return BalanceSettings(rpc_urls=["https://rpc.one", "https://rpc.two"])


class FakeNearProvider(BaseRpcProvider):
    """In-memory NEAR node answering the queries a balance lookup makes."""

    BLOCK_HASH = "FinalBlockHash111"
    EPOCH_ID = "EpochId111"

    def __init__(
        self,
        accounts: dict[str, dict[str, Any]] | None = None,
        pools: dict[str, dict[str, int]] | None = None,
        storage_amount_per_byte: int = 10**19,
        broken_pools: set[str] | None = None,
        unreachable_pools: set[str] | None = None,
    ):
        self.accounts = accounts or {}
        self.pools = pools or {}
        self.storage_amount_per_byte = storage_amount_per_byte
        self.broken_pools = broken_pools or set()
        self.unreachable_pools = unreachable_pools or set()
        self.calls: list[tuple[str, Any]] = []

    @property
    def name(self) -> str:
        return "fake"

    async def send(self, method: str, params: Any, *, account_id: str | None = None):
        self.calls.append((method, params))
        if method == "EXPERIMENTAL_protocol_config":
            return {
                "runtime_config": {
                    "storage_amount_per_byte": str(self.storage_amount_per_byte)
                }
            }
        if method == "block":
            return {
                "header": {
                    "hash": self.BLOCK_HASH,
                    "epoch_id": self.EPOCH_ID,
                    "height": 100,
                }
            }
        if method == "validators":
            return {
                "current_validators": [{"account_id": p} for p in self.pools],
                "next_validators": [{"account_id": p} for p in self.pools],
                "current_proposals": [],
            }
        if params["request_type"] == "view_account":
            if account_id not in self.accounts:
                raise AccountNotFoundError(account_id)
            return self.accounts[account_id]
        if params["request_type"] == "call_function":
            pool_id = params["account_id"]
            if pool_id in self.unreachable_pools:
                raise RpcNetworkError(f"{pool_id} query timed out", url="fake")
            if pool_id in self.broken_pools:
                raise RpcServerError(
                    f"wasm execution failed in {pool_id}",
                    cause="CONTRACT_EXECUTION_ERROR",
                )
            args = json.loads(base64.b64decode(params["args_base64"]))
            amount = self.pools[pool_id].get(args["account_id"], 0)
            return {"result": list(json.dumps(str(amount)).encode())}
        raise AssertionError(f"unexpected call {method} {params}")


def account_state(amount: int, locked: int = 0, storage_usage: int = 0) -> dict[str, Any]:
    return {
        "amount": str(amount),
        "locked": str(locked),
        "storage_usage": storage_usage,
        "code_hash": "11111111111111111111111111111111",
    }


@pytest.fixture
def near_node():
    """Factory for an in-memory NEAR node."""
    return FakeNearProvider


@pytest.fixture
def make_account():
    return account_state
