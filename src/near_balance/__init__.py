"""Query available, staked and total NEAR balances with RPC failover."""

from .classifier import classify_failure
from .fetcher import BalanceFetcher, BalanceRecord, build_balance_record
from .lifecycle import BalanceRequestController, BalanceView, FetchRequest, RequestState
from .settings import BalanceSettings, Network
from .validation import Invalid, Valid, validate_account_id

__all__ = [
    "BalanceFetcher",
    "BalanceRecord",
    "BalanceRequestController",
    "BalanceSettings",
    "BalanceView",
    "FetchRequest",
    "Invalid",
    "Network",
    "RequestState",
    "Valid",
    "build_balance_record",
    "classify_failure",
    "validate_account_id",
]
