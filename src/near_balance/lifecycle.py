"""Request lifecycle: supersession, timeout and the externally visible view.

Only one request is live at a time. Submitting a new account cancels the
running one before the new one starts, and ``close()`` cancels whatever is
running when the consumer goes away. A cancelled request never touches the
view, whatever its fetch eventually produces.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable

from .cancellation import CancellationToken
from .classifier import classify_failure
from .errors import RequestCancelledError, RequestTimeoutError
from .fetcher import BalanceFetcher, BalanceRecord
from .logger import get_logger
from .settings import BalanceSettings
from .validation import Invalid, ValidationResult, validate_account_id

logger = get_logger(__name__)


class RequestState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


TERMINAL_STATES = frozenset(
    {
        RequestState.SUCCEEDED,
        RequestState.FAILED,
        RequestState.CANCELLED,
        RequestState.TIMED_OUT,
    }
)


@dataclass(frozen=True)
class BalanceView:
    """What the presentation layer renders."""

    validation_error: str | None = None
    loading: bool = False
    balance: BalanceRecord | None = None
    error: str | None = None
    account_id: str | None = None


@dataclass(eq=False)
class FetchRequest:
    account_id: str
    deadline: float
    token: CancellationToken = field(default_factory=CancellationToken)
    state: RequestState = RequestState.IDLE
    task: asyncio.Task[None] | None = None
    result: BalanceRecord | None = None
    error: BaseException | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, state: RequestState) -> bool:
        """Move to ``state``. Returns False if the request already ended."""
        if self.is_terminal:
            return False
        self.state = state
        return True

    async def wait(self) -> None:
        """Wait for the underlying task without propagating its cancellation."""
        if self.task is not None:
            await asyncio.wait({self.task})


class BalanceRequestController:
    """Owns the single live balance request and the view derived from it."""

    def __init__(
        self,
        fetcher: BalanceFetcher,
        settings: BalanceSettings | None = None,
        on_change: Callable[[BalanceView], Any] | None = None,
    ):
        self.fetcher = fetcher
        self.settings = settings or fetcher.settings
        self.on_change = on_change
        self.view = BalanceView()
        self._current: FetchRequest | None = None
        self._closed = False

    @property
    def current(self) -> FetchRequest | None:
        return self._current

    @property
    def closed(self) -> bool:
        return self._closed

    def _publish(self, **changes: Any) -> None:
        self.view = replace(self.view, **changes)
        if self.on_change is not None:
            self.on_change(self.view)

    def on_input(self, raw: str) -> ValidationResult:
        """Live validation for a changed input; clears any displayed error."""
        if self.view.error is not None or self.view.validation_error is not None:
            self._publish(error=None, validation_error=None)
        return validate_account_id(raw)

    def submit(self, raw: str) -> FetchRequest | None:
        """Validate ``raw`` and start fetching its balance.

        Must be called from a running event loop. Returns the new request, or
        None when the input is invalid, in which case no network call is made.
        """
        if self._closed:
            raise RuntimeError("BalanceRequestController is closed")

        result = validate_account_id(raw)
        if isinstance(result, Invalid):
            self._publish(validation_error=result.reason)
            return None

        loop = asyncio.get_running_loop()

        # The old request must be dead before the new one exists
        self._cancel_current("superseded")

        request = FetchRequest(
            account_id=result.account_id,
            deadline=loop.time() + self.settings.request_timeout_seconds,
        )
        request.transition(RequestState.RUNNING)
        self._current = request
        self._publish(
            validation_error=None,
            loading=True,
            balance=None,
            error=None,
            account_id=None,
        )
        request.task = loop.create_task(
            self._run(request), name=f"fetch-balance:{request.account_id}"
        )
        logger.debug("Started balance request for %s", request.account_id)
        return request

    async def _run(self, request: FetchRequest) -> None:
        try:
            async with asyncio.timeout_at(request.deadline):
                record = await self.fetcher.fetch_balance(
                    request.account_id, request.token
                )
        except asyncio.CancelledError:
            request.transition(RequestState.CANCELLED)
            raise
        except RequestCancelledError:
            request.transition(RequestState.CANCELLED)
            return
        except TimeoutError:
            self._fail(
                request,
                RequestState.TIMED_OUT,
                RequestTimeoutError(
                    f"No balance for {request.account_id} within "
                    f"{self.settings.request_timeout_seconds}s"
                ),
            )
            return
        except Exception as e:
            self._fail(request, RequestState.FAILED, e)
            return

        if request.token.cancelled or not request.transition(RequestState.SUCCEEDED):
            logger.debug("Dropping late result for %s", request.account_id)
            return
        request.result = record
        self._release(request)
        self._publish(loading=False, balance=record, account_id=request.account_id)

    def _fail(
        self, request: FetchRequest, state: RequestState, error: BaseException
    ) -> None:
        if request.token.cancelled or not request.transition(state):
            logger.debug(
                "Dropping late failure for %s: %s", request.account_id, error
            )
            return
        request.error = error
        self._release(request)

        logger.error("Error fetching balance for %s: %s", request.account_id, error)
        logger.debug("Failure detail", exc_info=error)

        message = classify_failure(
            error, request.account_id, self.settings.network.value
        )
        self._publish(loading=False, error=message)

    def _release(self, request: FetchRequest) -> None:
        if self._current is request:
            self._current = None

    def _cancel_current(self, reason: str) -> None:
        request = self._current
        if request is None:
            return
        self._current = None
        request.token.cancel(reason)
        if request.transition(RequestState.CANCELLED):
            logger.debug("Request for %s %s", request.account_id, reason)
        if request.task is not None and not request.task.done():
            request.task.cancel()

    def close(self) -> None:
        """Tear down: cancel the running request and release its timer."""
        if self._closed:
            return
        self._closed = True
        self._cancel_current("torn down")

    async def __aenter__(self) -> BalanceRequestController:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()
