"""Balance fetch orchestration.

Resolves the account through the provider pool, then runs the liquid and the
delegated-stake lookups concurrently and folds them into one ``BalanceRecord``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Mapping

from .cancellation import CancellationToken
from .clients.base import BaseRpcProvider
from .clients.failover import FailoverRpcProvider
from .constants import DEFAULT_FRACTION_DIGITS, STAKING_POOL_BALANCE_METHOD
from .errors import BalanceCheckerError, RpcServerError
from .logger import get_logger
from .settings import BalanceSettings
from .units import format_near_amount, parse_yocto

logger = get_logger(__name__)


@dataclass(frozen=True)
class BalanceRecord:
    """Balance of one account, display strings plus the exact yocto values."""

    available: str
    staked: str
    total: str
    available_yocto: int
    staked_yocto: int
    total_yocto: int
    failed_validators: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "available": self.available,
            "staked": self.staked,
            "total": self.total,
            "available_yocto": str(self.available_yocto),
            "staked_yocto": str(self.staked_yocto),
            "total_yocto": str(self.total_yocto),
            "failed_validators": list(self.failed_validators),
        }


@dataclass
class AccountBalance:
    """Liquid balance breakdown, all in yoctoNEAR."""

    total: int
    state_staked: int  # locked for storage
    staked: int  # locked by validator staking
    available: int


@dataclass
class DelegatedStake:
    total: int
    staked_validators: list[tuple[str, int]] = field(default_factory=list)
    failed_validators: list[str] = field(default_factory=list)


def _require(data: Mapping[str, Any], key: str, what: str) -> Any:
    try:
        return data[key]
    except (KeyError, TypeError) as e:
        raise BalanceCheckerError(f"Malformed {what} response: missing '{key}'") from e


def build_balance_record(
    available: int,
    staked: int,
    fraction_digits: int = DEFAULT_FRACTION_DIGITS,
    failed_validators: tuple[str, ...] = (),
) -> BalanceRecord:
    """Sum and format raw yocto amounts.

    The total is added in integer yoctoNEAR before any rounding, so it can
    differ from the sum of the rounded display strings in the last digit.
    """
    total = available + staked
    return BalanceRecord(
        available=format_near_amount(available, fraction_digits),
        staked=format_near_amount(staked, fraction_digits),
        total=format_near_amount(total, fraction_digits),
        available_yocto=available,
        staked_yocto=staked,
        total_yocto=total,
        failed_validators=failed_validators,
    )


class AccountHandle:
    """Account-scoped view over a provider, obtained via ``resolve_account``."""

    def __init__(
        self,
        provider: BaseRpcProvider,
        account_id: str,
        *,
        max_concurrent_calls: int = 5,
    ):
        self.provider = provider
        self.account_id = account_id
        self._max_concurrent_calls = max_concurrent_calls

    async def get_account_balance(self) -> AccountBalance:
        """Liquid balance: what the account can spend right now.

        Storage staking and validator locking both hold back funds, the larger
        of the two is unavailable.
        """
        protocol_config, state = await asyncio.gather(
            self.provider.protocol_config(),
            self.provider.view_account(self.account_id),
        )
        runtime_config = _require(protocol_config, "runtime_config", "protocol config")
        cost_per_byte = parse_yocto(
            _require(runtime_config, "storage_amount_per_byte", "protocol config")
        )
        amount = parse_yocto(_require(state, "amount", "view_account"))
        locked = parse_yocto(_require(state, "locked", "view_account"))
        storage_usage = int(_require(state, "storage_usage", "view_account"))

        state_staked = storage_usage * cost_per_byte
        total = amount + locked
        available = total - max(locked, state_staked)
        return AccountBalance(
            total=total,
            state_staked=state_staked,
            staked=locked,
            available=max(available, 0),
        )

    async def _final_block(self) -> tuple[str, str]:
        """Hash and epoch of the latest final block, pinning the staking reads."""
        block = await self.provider.block()
        header = _require(block, "header", "block")
        return (
            _require(header, "hash", "block"),
            _require(header, "epoch_id", "block"),
        )

    async def _staking_pools(self, epoch_id: str) -> list[str]:
        validators = await self.provider.validators(epoch_id)
        pools: dict[str, None] = {}
        for key in ("current_validators", "next_validators", "current_proposals"):
            for validator in validators.get(key) or []:
                account_id = validator.get("account_id")
                if account_id:
                    pools.setdefault(account_id, None)
        return list(pools)

    async def get_active_delegated_stake_balance(self) -> DelegatedStake:
        """Sum of this account's deposits across every active staking pool.

        Every pool is read at the same final block. A pool whose contract call
        fails or returns garbage is reported in ``failed_validators``; network
        failures fail the whole lookup.
        """
        block_hash, epoch_id = await self._final_block()
        pools = await self._staking_pools(epoch_id)
        logger.debug(
            "Querying %d staking pools for %s at block %s",
            len(pools),
            self.account_id,
            block_hash,
        )
        semaphore = asyncio.Semaphore(self._max_concurrent_calls)

        async def _pool_balance(pool_id: str) -> int:
            async with semaphore:
                raw = await self.provider.call_function(
                    pool_id,
                    STAKING_POOL_BALANCE_METHOD,
                    {"account_id": self.account_id},
                    block_id=block_hash,
                )
            return parse_yocto(raw)

        results = await asyncio.gather(
            *(_pool_balance(pool_id) for pool_id in pools), return_exceptions=True
        )

        stake = DelegatedStake(total=0)
        for pool_id, result in zip(pools, results):
            if isinstance(result, (RpcServerError, ValueError)):
                logger.warning(
                    "Staking pool %s failed for %s: %s", pool_id, self.account_id, result
                )
                stake.failed_validators.append(pool_id)
            elif isinstance(result, BaseException):
                raise result
            elif result > 0:
                stake.staked_validators.append((pool_id, result))
                stake.total += result
        return stake


class BalanceFetcher:
    """Fetches the available, staked and total balance of one account."""

    def __init__(self, provider: BaseRpcProvider, settings: BalanceSettings):
        self.provider = provider
        self.settings = settings

    @classmethod
    def from_settings(cls, settings: BalanceSettings) -> BalanceFetcher:
        return cls(FailoverRpcProvider.from_settings(settings), settings)

    async def resolve_account(self, account_id: str) -> AccountHandle:
        """Open an account-scoped handle; raises AccountNotFoundError early."""
        await self.provider.view_account(account_id)
        return AccountHandle(
            self.provider,
            account_id,
            max_concurrent_calls=self.settings.rpc_max_concurrent_calls,
        )

    async def fetch_balance(
        self, account_id: str, token: CancellationToken
    ) -> BalanceRecord:
        """Fetch and aggregate the balance of ``account_id``.

        Args:
            account_id: A validated NEAR account ID
            token: Cancellation token of the owning request

        Returns:
            BalanceRecord in NEAR with ``fraction_digits`` decimals

        Raises:
            RequestCancelledError: If the token is cancelled at a checkpoint
            AccountNotFoundError: If the account does not exist
            ProvidersExhaustedError: If every RPC endpoint failed
        """
        token.raise_if_cancelled()

        account = await self.resolve_account(account_id)

        token.raise_if_cancelled()

        liquid, delegated = await asyncio.gather(
            account.get_account_balance(),
            account.get_active_delegated_stake_balance(),
        )

        token.raise_if_cancelled()

        record = build_balance_record(
            liquid.available,
            delegated.total,
            self.settings.fraction_digits,
            tuple(delegated.failed_validators),
        )
        logger.debug(
            "Balance for %s: available=%s staked=%s total=%s (%d pools failed)",
            account_id,
            record.available,
            record.staked,
            record.total,
            len(record.failed_validators),
        )
        return record
