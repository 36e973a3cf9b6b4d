"""Map balance lookup failures to user-facing messages."""

from __future__ import annotations

import asyncio

import requests

from .errors import (
    AccountNotFoundError,
    ProvidersExhaustedError,
    RequestCancelledError,
    RequestTimeoutError,
    RpcNetworkError,
)

TIMEOUT_MESSAGE = "Request timed out. The network may be slow. Please try again."
PROVIDERS_EXHAUSTED_MESSAGE = (
    "All RPC providers failed. The network may be experiencing issues. "
    "Please try again later."
)
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."
GENERIC_ERROR_MESSAGE = "An error occurred while fetching the balance."


def account_not_found_message(account_id: str, network: str) -> str:
    return f'Account "{account_id}" does not exist on NEAR {network}.'


def classify_failure(exc: BaseException, account_id: str, network: str) -> str | None:
    """Return the message to show for ``exc``, or None if it must stay hidden.

    Cancellation is bookkeeping only and never reaches the user.
    """
    if isinstance(exc, (RequestCancelledError, asyncio.CancelledError)):
        return None
    if isinstance(exc, (RequestTimeoutError, TimeoutError)):
        return TIMEOUT_MESSAGE
    if isinstance(exc, AccountNotFoundError):
        return account_not_found_message(exc.account_id or account_id, network)
    if isinstance(exc, ProvidersExhaustedError):
        return PROVIDERS_EXHAUSTED_MESSAGE
    if isinstance(
        exc, (RpcNetworkError, ConnectionError, requests.RequestException)
    ):
        return NETWORK_ERROR_MESSAGE

    message = str(exc)
    if message:
        return f"Error: {message}"
    return GENERIC_ERROR_MESSAGE
