from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Generic, Iterator, TypeVar

from boardlink.errors import ChannelClosedError, OperationCancelledError
from boardlink.lichess.endpoints import STREAM_BOARD_PATH
from boardlink.lichess.schemas.board import parse_board_message
from boardlink.lichess.services.concurrency import CancelToken, spawn
from boardlink.lichess.services.ndjson import iter_ndjson
from boardlink.lichess.services.transport import LichessTransport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoardChannel(Generic[T]):
    """Single-writer, multi-reader handoff of board records.

    ``send`` blocks while the buffer is full. Readers drain records in order
    and stop once the channel is closed and empty; if the writer closed it with
    an error, that error is raised to each reader after the remaining records.
    """

    def __init__(
        self,
        maxsize: int = 1,
        *,
        poll_interval: float = 0.1,
        name: str | None = None,
    ) -> None:
        self.name = name
        self._queue: queue.Queue[T] = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()
        self._poll_interval = poll_interval
        self.error: BaseException | None = None

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, item: T, cancel: CancelToken | None = None) -> None:
        while True:
            if self._closed.is_set():
                raise ChannelClosedError(self.name)
            if cancel is not None:
                cancel.raise_if_cancelled(f"send on board channel {self.name}")
            try:
                self._queue.put(item, timeout=self._poll_interval)
                return
            except queue.Full:
                continue

    def close(self, error: BaseException | None = None) -> None:
        if self._closed.is_set():
            return
        self.error = error
        self._closed.set()

    def receive(self, timeout: float | None = None, cancel: CancelToken | None = None) -> T | None:
        """Return the next record, or None once the channel is closed and drained."""
        waited = 0.0
        while True:
            if cancel is not None:
                cancel.raise_if_cancelled(f"receive on board channel {self.name}")
            try:
                return self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                if self._closed.is_set() and self._queue.empty():
                    if self.error is not None:
                        raise self.error
                    return None
            waited += self._poll_interval
            if timeout is not None and waited >= timeout:
                raise TimeoutError(f"No board update within {timeout} seconds")

    def iter_updates(self, cancel: CancelToken | None = None) -> Iterator[T]:
        while True:
            item = self.receive(cancel=cancel)
            if item is None:
                return
            yield item

    def __iter__(self) -> Iterator[T]:
        return self.iter_updates()


class BoardUpdatePublisher:
    """Forwards one game's board stream onto its channel until the stream ends."""

    def __init__(
        self,
        transport: LichessTransport,
        game_id: str,
        channel: BoardChannel,
        *,
        cancel: CancelToken | None = None,
    ) -> None:
        self._transport = transport
        self.game_id = game_id
        self._channel = channel
        self._cancel = cancel if cancel is not None else CancelToken()

    def start(self) -> Future[int]:
        return spawn(self.run, name=f"board-stream-{self.game_id}")

    def run(self) -> int:
        """Publish every record; returns how many were forwarded."""
        published = 0
        error: BaseException | None = None
        source = f"board stream {self.game_id}"
        logger.info("Board stream opening game_id=%s", self.game_id)
        try:
            with self._transport.stream(STREAM_BOARD_PATH.format(game_id=self.game_id)) as response:
                unregister = self._cancel.on_cancel(response.close)
                try:
                    messages = iter_ndjson(
                        response.iter_lines(),
                        parse_board_message,
                        cancel=self._cancel,
                        source=source,
                        read_timeout=self._transport.read_timeout,
                    )
                    for message in messages:
                        self._channel.send(message, self._cancel)
                        published += 1
                        logger.debug(
                            "Board update published game_id=%s type=%s",
                            self.game_id,
                            message.type,
                        )
                finally:
                    unregister()
        except OperationCancelledError as exc:
            error = exc
            logger.info("Board stream cancelled game_id=%s records=%s", self.game_id, published)
            raise
        except Exception as exc:
            error = exc
            logger.exception("Board stream failed game_id=%s records=%s", self.game_id, published)
            raise
        finally:
            self._channel.close(error)
        logger.info("Board stream closed game_id=%s records=%s", self.game_id, published)
        return published
