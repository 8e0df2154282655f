from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

import berserk
import requests

from boardlink.errors import StreamTimeoutError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def to_transport_error(exc: Exception, path: str | None = None) -> TransportError:
    if isinstance(exc, berserk.exceptions.ResponseError):
        cause: dict[str, Any] | None = exc.cause if isinstance(exc.cause, dict) else None
        return TransportError(str(exc), path=path, status_code=exc.status_code, cause=cause)
    return TransportError(str(exc), path=path)


class LichessTransport:
    """Authenticated access to the Lichess API.

    Wraps a ``berserk.TokenSession`` (a ``requests.Session`` carrying the bearer
    token). Streams and the seek go through :meth:`stream` and :meth:`post`,
    which keep the raw response so it can be closed on cancel. Everything else
    goes through :attr:`client`, a ``berserk.Client`` on the same session,
    invoked via :meth:`call`.

    Non-2xx responses and connection failures become :class:`TransportError`;
    read timeouts become :class:`StreamTimeoutError`.
    """

    def __init__(
        self,
        token: str | None,
        *,
        base_url: str = "https://lichess.org",
        connect_timeout: float = 10.0,
        read_timeout: float | None = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        if not token and session is None:
            raise TransportError("LICHESS_TOKEN is not configured.")
        self.base_url = base_url.rstrip("/")
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self._session = session if session is not None else berserk.TokenSession(token)
        self.client = berserk.Client(session=self._session, base_url=self.base_url)

    def _request(
        self,
        method: str,
        path: str,
        *,
        stream: bool = False,
        **kwargs: Any,
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.debug("Lichess request method=%s path=%s stream=%s", method, path, stream)
        try:
            response = self._session.request(
                method,
                url,
                stream=stream,
                timeout=(self.connect_timeout, self.read_timeout),
                **kwargs,
            )
        except requests.ConnectTimeout as exc:
            raise TransportError(
                f"Connection timed out after {self.connect_timeout}s",
                path=path,
            ) from exc
        except requests.Timeout as exc:
            raise StreamTimeoutError(path, self.read_timeout) from exc
        except requests.RequestException as exc:
            raise to_transport_error(exc, path) from exc

        if not response.ok:
            error = berserk.exceptions.ResponseError(response)
            response.close()
            logger.warning(
                "Lichess request failed method=%s path=%s status=%s",
                method,
                path,
                response.status_code,
            )
            raise to_transport_error(error, path) from error
        return response

    def call(self, method: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Invoke a ``berserk.Client`` method, mapping its errors to TransportError."""
        name = getattr(method, "__qualname__", repr(method))
        logger.debug("Lichess client call method=%s", name)
        try:
            return method(*args, **kwargs)
        except (berserk.exceptions.BerserkError, requests.RequestException) as exc:
            logger.warning("Lichess client call failed method=%s error=%s", name, exc)
            raise to_transport_error(exc) from exc

    def post(self, path: str, data: Any = None, *, stream: bool = False, **kwargs: Any) -> requests.Response:
        return self._request("POST", path, data=data, stream=stream, **kwargs)

    @contextmanager
    def stream(self, path: str, **kwargs: Any) -> Iterator[requests.Response]:
        """Open a streaming GET; the response is closed when the block exits."""
        response = self._request("GET", path, stream=True, **kwargs)
        try:
            yield response
        finally:
            response.close()

    def close(self) -> None:
        self._session.close()
