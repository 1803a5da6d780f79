"""One-shot completion slot shared by a submitter and an SDK worker thread.

A :class:`Completion` is resolved at most once, from any thread, and can
be waited on with a deadline. Resolution happens under the condition's
lock before waiters are notified, so a woken waiter always observes the
value that woke it.
"""

from __future__ import annotations

import threading
from typing import Generic, TypeVar

from storekit.base.async_support import async_wrap
from storekit.base.exceptions import AsyncTimeoutError, UploadCancelledError

T = TypeVar("T")


class Completion(Generic[T]):
    """Single-slot future with timeout and cancellation."""

    def __init__(self, label: str = "") -> None:
        self.label = label
        self._cond = threading.Condition()
        self._finished = False
        self._cancelled = False
        self._value: T | None = None

    def set_result(self, value: T) -> bool:
        """Resolve the completion and wake one waiter.

        Returns:
            ``True`` if this call resolved it, ``False`` if it was already
            resolved or cancelled.
        """
        with self._cond:
            if self._finished:
                return False
            self._value = value
            self._finished = True
            self._cond.notify()
        return True

    def cancel(self) -> bool:
        """Stop waiting. Every current and future waiter raises."""
        with self._cond:
            if self._finished:
                return False
            self._cancelled = True
            self._finished = True
            self._cond.notify_all()
        return True

    def done(self) -> bool:
        with self._cond:
            return self._finished

    def cancelled(self) -> bool:
        with self._cond:
            return self._cancelled

    def wait(self, timeout: float | None) -> T:
        """Block until resolved.

        Args:
            timeout: Seconds to wait, or ``None`` to wait without a deadline.

        Raises:
            AsyncTimeoutError: If the deadline passes first.
            UploadCancelledError: If the completion was cancelled.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._finished, timeout):
                raise AsyncTimeoutError(
                    f"No completion for {self.label or 'request'} within {timeout}s"
                )
            if self._cancelled:
                raise UploadCancelledError(f"Wait for {self.label or 'request'} was cancelled")
            return self._value  # type: ignore[return-value]

    await_result = async_wrap(wait)
