from __future__ import annotations

from .errors import RequestCancelledError


class CancellationToken:
    """Cooperative cancellation flag.

    Setting the flag does not interrupt any I/O. Work checks it at fixed
    checkpoints and results produced after cancellation are dropped.
    """

    __slots__ = ("_cancelled", "_reason")

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._cancelled:
            self._cancelled = True
            self._reason = reason

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RequestCancelledError(f"Request {self._reason}")
