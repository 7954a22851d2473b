"""Background delivery of sweep results to a caller-supplied callback.

The sweep loop appends each point to a shared, append-only result list and then calls
`UpdatePump.notify`. A single worker thread waits on a token queue and, for every
token, hands the next undelivered point to the callback. Closing the pump puts a close
sentinel behind any outstanding tokens, so `close` returns only once every point
recorded before it has been delivered.

The producer never waits on the consumer: `notify` only enqueues a token. A callback
that raises is reported to the exception handler (by default logged) and delivery
carries on with the next point.
"""

from __future__ import annotations

import queue
import threading
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from loguru import logger

from ivsweep.util.defaults import PUMP_JOIN_TIMEOUT

T = TypeVar("T")

_CLOSE = object()


def log_callback_exception(index: int, exc: BaseException) -> None:
    logger.opt(exception=exc).error(
        "Sweep update callback failed on point {}, continuing", index
    )


class UpdatePump(Generic[T]):
    """Single-worker hand-off between the sweep loop and an update callback.

    Parameters
    ----------
    results : Sequence[T]
        Append-only result list shared with the producer.
    callback : Callable[[int, T], Any]
        Called on the worker thread as ``callback(index, point)``, in order.
    exception_handler : Callable[[int, BaseException], Any], optional
        Receives any exception the callback raises, by default logs it.
    """

    def __init__(
        self,
        results: Sequence[T],
        callback: Callable[[int, T], Any],
        exception_handler: Callable[[int, BaseException], Any] = log_callback_exception,
    ):
        self.results = results
        self.callback = callback
        self.exception_handler = exception_handler
        self._tokens: queue.SimpleQueue = queue.SimpleQueue()
        self._cursor = 0
        self._thread: Optional[threading.Thread] = None
        self._closed = False

    @property
    def delivered(self) -> int:
        """Number of points handed to the callback so far."""
        return self._cursor

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("UpdatePump already started")
        self._thread = threading.Thread(
            target=self._worker, name="ivsweep-update-pump", daemon=True
        )
        self._thread.start()

    def notify(self) -> None:
        """Signal that one more point has been appended to the results."""
        if self._closed:
            raise RuntimeError("UpdatePump is closed")
        self._tokens.put(None)

    def close(self, timeout: Optional[float] = PUMP_JOIN_TIMEOUT) -> None:
        """Send the close sentinel and wait for the worker to drain and exit."""
        if self._closed:
            return
        self._closed = True
        self._tokens.put(_CLOSE)
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning(
                    "Update pump did not finish within {} s ({} point(s) delivered)",
                    timeout,
                    self._cursor,
                )

    def _worker(self) -> None:
        while True:
            token = self._tokens.get()
            if token is _CLOSE:
                break
            index = self._cursor
            # the cursor moves on even if the callback fails
            self._cursor += 1
            try:
                self.callback(index, self.results[index])
            except Exception as exc:
                try:
                    self.exception_handler(index, exc)
                except Exception:
                    logger.exception("Update pump exception handler failed")
        logger.trace("Update pump finished after {} point(s)", self._cursor)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
