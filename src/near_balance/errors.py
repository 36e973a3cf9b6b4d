"""Exception hierarchy for balance lookups."""

from __future__ import annotations


class BalanceCheckerError(Exception):
    """Base class for all balance checker failures."""


class InvalidAccountIdError(BalanceCheckerError):
    """Raised when an account ID does not match any supported shape."""


class RpcNetworkError(BalanceCheckerError):
    """Transient failure talking to a single RPC endpoint.

    Covers transport errors, non-2xx responses, malformed payloads and
    node-side internal errors. The provider pool fails over on this error.
    """

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class RpcServerError(BalanceCheckerError):
    """JSON-RPC handler error that every provider would report the same way."""

    def __init__(self, message: str, cause: str | None = None):
        super().__init__(message)
        self.cause = cause


class AccountNotFoundError(RpcServerError):
    """Raised when the requested account does not exist on chain."""

    def __init__(self, account_id: str):
        super().__init__(
            f"Account {account_id} does not exist", cause="UNKNOWN_ACCOUNT"
        )
        self.account_id = account_id


class ProvidersExhaustedError(BalanceCheckerError):
    """Raised when every configured RPC endpoint failed the same request."""

    def __init__(self, failures: list[tuple[str, BaseException]]):
        self.failures = failures
        super().__init__(f"Exceeded {len(failures)} providers to execute request")


class RequestTimeoutError(BalanceCheckerError):
    """Raised when a balance request does not finish before its deadline."""


class RequestCancelledError(BalanceCheckerError):
    """Raised at a cancellation checkpoint of a superseded request."""
