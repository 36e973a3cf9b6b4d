from __future__ import annotations

from typing import Any

import pytest

from near_balance.clients.base import BaseRpcProvider
from near_balance.clients.failover import FailoverRpcProvider
from near_balance.clients.near_rpc import JsonRpcProvider
from near_balance.errors import (
    AccountNotFoundError,
    ProvidersExhaustedError,
    RpcNetworkError,
)
from near_balance.settings import BalanceSettings


class ScriptedProvider(BaseRpcProvider):
    def __init__(self, name: str, outcome: Any):
        self._name = name
        self.outcome = outcome
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def send(self, method: str, params: Any, *, account_id: str | None = None):
        self.calls += 1
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


@pytest.mark.asyncio
async def test_first_success_wins():
    first = ScriptedProvider("a", {"amount": "1"})
    second = ScriptedProvider("b", {"amount": "2"})

    result = await FailoverRpcProvider([first, second]).view_account("alice.near")

    assert result == {"amount": "1"}
    assert (first.calls, second.calls) == (1, 0)


@pytest.mark.asyncio
async def test_fails_over_on_transient_error():
    first = ScriptedProvider("a", RpcNetworkError("down", url="a"))
    second = ScriptedProvider("b", {"amount": "2"})

    result = await FailoverRpcProvider([first, second]).view_account("alice.near")

    assert result == {"amount": "2"}
    assert (first.calls, second.calls) == (1, 1)


@pytest.mark.asyncio
async def test_account_not_found_does_not_fail_over():
    first = ScriptedProvider("a", AccountNotFoundError("ghost.near"))
    second = ScriptedProvider("b", {"amount": "2"})

    with pytest.raises(AccountNotFoundError):
        await FailoverRpcProvider([first, second]).view_account("ghost.near")
    assert second.calls == 0


@pytest.mark.asyncio
async def test_all_providers_failing_raises_exhausted():
    providers = [
        ScriptedProvider(name, RpcNetworkError(f"{name} down", url=name))
        for name in ("a", "b", "c")
    ]

    with pytest.raises(ProvidersExhaustedError, match="Exceeded 3 providers") as excinfo:
        await FailoverRpcProvider(providers).validators()

    assert [name for name, _ in excinfo.value.failures] == ["a", "b", "c"]
    assert all(p.calls == 1 for p in providers)


@pytest.mark.asyncio
async def test_no_state_kept_between_calls():
    first = ScriptedProvider("a", RpcNetworkError("down", url="a"))
    second = ScriptedProvider("b", {"ok": True})
    pool = FailoverRpcProvider([first, second])

    await pool.validators()
    first.outcome = {"ok": "first"}

    assert await pool.validators() == {"ok": "first"}


def test_requires_a_provider():
    with pytest.raises(ValueError):
        FailoverRpcProvider([])


def test_from_settings_preserves_endpoint_order():
    settings = BalanceSettings(rpc_urls=["https://x", "https://y"], rpc_call_timeout=4)

    pool = FailoverRpcProvider.from_settings(settings)

    assert [p.name for p in pool.providers] == ["https://x", "https://y"]
    assert all(isinstance(p, JsonRpcProvider) for p in pool.providers)
    assert all(p.timeout == 4 for p in pool.providers)
