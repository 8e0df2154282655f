from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterable, Iterator, TypeVar

import requests
from urllib3.exceptions import ReadTimeoutError

from boardlink.errors import OperationCancelledError, StreamDecodeError, StreamTimeoutError
from boardlink.lichess.services.concurrency import CancelToken

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_read_timeout(exc: BaseException) -> bool:
    if isinstance(exc, (requests.Timeout, ReadTimeoutError)):
        return True
    # requests wraps urllib3 read timeouts raised mid-body in a ConnectionError.
    return any(isinstance(arg, ReadTimeoutError) for arg in getattr(exc, "args", ()))


def iter_ndjson(
    lines: Iterable[bytes | str],
    parse: Callable[[Any], T] | None = None,
    *,
    cancel: CancelToken | None = None,
    source: str = "stream",
    read_timeout: float | None = None,
) -> Iterator[T]:
    """Decode newline-delimited JSON records from ``lines``.

    Yields one record per non-blank line, in stream order, and returns when the
    stream ends. A malformed line, a record ``parse`` rejects, or a failure
    while reading raises :class:`StreamDecodeError` and ends the sequence.
    """
    iterator = iter(lines)
    line_number = 0
    records = 0
    while True:
        if cancel is not None:
            cancel.raise_if_cancelled(source)
        try:
            raw = next(iterator)
        except StopIteration:
            if cancel is not None and cancel.cancelled:
                raise OperationCancelledError(source) from None
            logger.debug("NDJSON stream ended source=%s records=%s", source, records)
            return
        except Exception as exc:
            if cancel is not None and cancel.cancelled:
                raise OperationCancelledError(source) from exc
            if _is_read_timeout(exc):
                raise StreamTimeoutError(source, read_timeout) from exc
            raise StreamDecodeError(source, line_number + 1, f"read failed: {exc}") from exc

        line_number += 1
        try:
            text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        except UnicodeDecodeError as exc:
            raise StreamDecodeError(source, line_number, f"invalid UTF-8: {exc}") from exc
        if not text.strip():
            continue

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StreamDecodeError(source, line_number, f"malformed JSON: {exc.msg}") from exc

        if parse is None:
            record = payload
        else:
            try:
                record = parse(payload)
            except (ValueError, TypeError) as exc:
                raise StreamDecodeError(source, line_number, f"unexpected record: {exc}") from exc

        records += 1
        yield record
