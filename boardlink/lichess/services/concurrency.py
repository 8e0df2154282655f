from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, TypeVar

from boardlink.errors import OperationCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelToken:
    """Thread-safe cancellation flag with callbacks.

    Callbacks registered with :meth:`on_cancel` run once, on the thread that
    calls :meth:`cancel`. Blocking stream reads register a callback that closes
    the underlying response so the reading thread wakes up.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: dict[int, Callable[[], Any]] = {}
        self._next_id = 0

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Cancel callback raised callback=%r", callback)

    def on_cancel(self, callback: Callable[[], Any]) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it."""
        with self._lock:
            if not self._event.is_set():
                key = self._next_id
                self._next_id += 1
                self._callbacks[key] = callback

                def unregister() -> None:
                    with self._lock:
                        self._callbacks.pop(key, None)

                return unregister
        callback()
        return lambda: None

    def raise_if_cancelled(self, operation: str = "operation") -> None:
        if self._event.is_set():
            raise OperationCancelledError(operation)


def spawn(target: Callable[..., T], *args: Any, name: str) -> Future[T]:
    """Run ``target`` on a daemon thread and report its outcome through a future."""
    future: Future[T] = Future()

    def runner() -> None:
        if not future.set_running_or_notify_cancel():
            return
        logger.debug("Worker thread started name=%s", name)
        try:
            result = target(*args)
        except Exception as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)
        finally:
            logger.debug("Worker thread finished name=%s", name)

    thread = threading.Thread(target=runner, name=name, daemon=True)
    thread.start()
    return future


def wait_for_future(
    future: Future[T],
    cancel: CancelToken,
    *,
    poll_interval: float,
    operation: str,
) -> T:
    """Block on ``future`` while honouring ``cancel`` between polls."""
    while True:
        cancel.raise_if_cancelled(operation)
        try:
            return future.result(timeout=poll_interval)
        except FutureTimeoutError:
            continue
