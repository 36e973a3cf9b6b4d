"""Ordered RPC failover.

Endpoints are tried strictly in order. A transient failure moves on to the
next endpoint immediately; terminal errors (missing account, handler errors)
propagate untouched. There is no retry of a single endpoint and no backoff,
the outer request deadline bounds the whole walk.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from ..errors import ProvidersExhaustedError, RpcNetworkError
from ..logger import get_logger
from .base import BaseRpcProvider
from .near_rpc import JsonRpcProvider

if TYPE_CHECKING:
    from ..settings import BalanceSettings

logger = get_logger(__name__)


class FailoverRpcProvider(BaseRpcProvider):
    def __init__(self, providers: Sequence[BaseRpcProvider]):
        if not providers:
            raise ValueError("FailoverRpcProvider needs at least one provider")
        self._providers = tuple(providers)

    @classmethod
    def from_settings(cls, settings: BalanceSettings) -> FailoverRpcProvider:
        return cls(
            [
                JsonRpcProvider(endpoint, timeout=settings.rpc_call_timeout)
                for endpoint in settings.endpoints
            ]
        )

    @property
    def name(self) -> str:
        return f"failover({', '.join(p.name for p in self._providers)})"

    @property
    def providers(self) -> tuple[BaseRpcProvider, ...]:
        return self._providers

    async def send(
        self, method: str, params: Any, *, account_id: str | None = None
    ) -> Any:
        failures: list[tuple[str, BaseException]] = []

        for index, provider in enumerate(self._providers):
            try:
                result = await provider.send(method, params, account_id=account_id)
            except RpcNetworkError as e:
                failures.append((provider.name, e))
                remaining = len(self._providers) - index - 1
                logger.warning(
                    "RPC %s failed on %s (%s); %d provider(s) left",
                    method,
                    provider.name,
                    e,
                    remaining,
                )
                continue

            if failures:
                logger.info("RPC %s succeeded on fallback %s", method, provider.name)
            return result

        logger.error(
            "RPC %s failed on all %d providers: %s",
            method,
            len(failures),
            "; ".join(f"{name}: {exc}" for name, exc in failures),
        )
        raise ProvidersExhaustedError(failures)
