from __future__ import annotations

from functools import lru_cache
from typing import Any

from fastapi import HTTPException

from boardlink.core.config import settings
from boardlink.errors import (
    GameAlreadyActiveError,
    LichessError,
    NoActiveGameError,
    OperationCancelledError,
    SearchInProgressError,
    StreamDecodeError,
    StreamTimeoutError,
    TransportError,
    WatcherStreamClosedError,
)
from boardlink.lichess.services.session import LichessSession

_STATUS_BY_ERROR: tuple[tuple[type[LichessError], int], ...] = (
    (GameAlreadyActiveError, 409),
    (SearchInProgressError, 409),
    (NoActiveGameError, 404),
    (StreamTimeoutError, 504),
    (WatcherStreamClosedError, 502),
    (StreamDecodeError, 502),
    (OperationCancelledError, 499),
)


@lru_cache(maxsize=1)
def get_session() -> LichessSession:
    if not settings.LICHESS_TOKEN:
        raise HTTPException(
            status_code=503,
            detail={"error": "LICHESS_TOKEN is not configured."},
        )
    return LichessSession.from_settings(settings)


def to_http_exception(exc: Exception) -> HTTPException:
    if isinstance(exc, TransportError):
        detail: dict[str, Any]
        if isinstance(exc.cause, dict):
            detail = exc.cause
        else:
            detail = {"error": str(exc)}
        status_code = exc.status_code if isinstance(exc.status_code, int) else 502
        return HTTPException(status_code=status_code, detail=detail)
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail={"error": str(exc)})
    return HTTPException(status_code=500, detail={"error": str(exc)})
