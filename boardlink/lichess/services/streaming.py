from __future__ import annotations

import asyncio
import json
import logging
import threading
from typing import Any, AsyncIterator, Callable, Iterator

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from boardlink.lichess.services.concurrency import CancelToken

logger = logging.getLogger(__name__)


def _serialize_exception(exc: Exception) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": str(exc), "kind": type(exc).__name__}
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        payload["status_code"] = status_code
    cause = getattr(exc, "cause", None)
    if isinstance(cause, dict):
        payload["cause"] = cause
    return payload


def _as_payload(item: Any) -> Any:
    if isinstance(item, BaseModel):
        return item.model_dump(mode="json", by_alias=True, exclude_none=True)
    return item


async def iter_sse(
    request: Request,
    iterator_factory: Callable[[CancelToken], Iterator[Any]],
    *,
    typed_events: bool = False,
    poll_interval: float = 0.5,
) -> AsyncIterator[str]:
    """Relay a blocking iterator as server-sent events.

    The iterator runs on a worker thread; the cancel token handed to the
    factory is cancelled when the client disconnects or the response ends.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[tuple[str, Any]] = asyncio.Queue()
    cancel = CancelToken()
    url = getattr(request, "url", None)
    path = getattr(url, "path", "unknown")
    client = getattr(request, "client", None)
    client_host = getattr(client, "host", "unknown")
    logger.info("SSE stream opened path=%s client=%s", path, client_host)

    def worker() -> None:
        logger.debug("SSE worker thread started")
        try:
            for item in iterator_factory(cancel):
                if cancel.cancelled:
                    logger.debug("SSE worker detected stop signal")
                    break
                payload = _as_payload(item)
                item_type = payload.get("type") if isinstance(payload, dict) else None
                logger.debug("SSE worker queued payload type=%s", item_type)
                loop.call_soon_threadsafe(queue.put_nowait, ("data", payload))
        except Exception as exc:
            if cancel.cancelled:
                logger.debug("SSE worker stopped after cancellation")
            else:
                logger.exception("SSE worker iterator raised an exception")
                loop.call_soon_threadsafe(queue.put_nowait, ("error", _serialize_exception(exc)))
        finally:
            logger.debug("SSE worker thread finished")
            loop.call_soon_threadsafe(queue.put_nowait, ("done", None))

    thread = threading.Thread(target=worker, daemon=True)
    thread.start()

    try:
        while True:
            if await request.is_disconnected():
                logger.info("SSE stream disconnected by client path=%s client=%s", path, client_host)
                break
            try:
                event, payload = await asyncio.wait_for(queue.get(), timeout=poll_interval)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                logger.info("SSE stream task cancelled path=%s client=%s", path, client_host)
                break

            if event == "data":
                encoded = jsonable_encoder(payload)
                if typed_events and isinstance(payload, dict):
                    event_name = payload.get("type")
                    if isinstance(event_name, str) and event_name:
                        yield f"event: {event_name}\ndata: {json.dumps(encoded)}\n\n"
                        continue
                yield f"data: {json.dumps(encoded)}\n\n"
                continue

            if event == "error":
                encoded = jsonable_encoder(payload)
                yield f"event: proxy_error\ndata: {json.dumps(encoded)}\n\n"
                break

            break
    finally:
        cancel.cancel()
        logger.info("SSE stream closed path=%s client=%s", path, client_host)
