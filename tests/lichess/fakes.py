from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from boardlink.errors import TransportError


def ndjson_lines(*records: Any) -> list[bytes]:
    return [json.dumps(record).encode("utf-8") for record in records]


class FakeResponse:
    """Stand-in for a streamed ``requests.Response``.

    ``wait_for`` delays the first line until the event is set; ``hold_open``
    keeps the stream open after the last line until ``close`` is called.
    """

    def __init__(
        self,
        lines: list[bytes] | None = None,
        *,
        hold_open: bool = False,
        wait_for: threading.Event | None = None,
        error: Exception | None = None,
    ) -> None:
        self._lines = list(lines or [])
        self._hold_open = hold_open
        self._wait_for = wait_for
        self._error = error
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def iter_lines(self) -> Iterator[bytes]:
        if self._wait_for is not None:
            while not self._wait_for.wait(0.01):
                if self._closed.is_set():
                    return
        for line in self._lines:
            if self._closed.is_set():
                return
            yield line
        if self._error is not None:
            raise self._error
        if self._hold_open:
            self._closed.wait()

    def close(self) -> None:
        self._closed.set()


class _ClientNamespace:
    """One ``berserk.Client`` namespace such as ``client.board``; records every call."""

    def __init__(self, client: FakeClient, namespace: str) -> None:
        self._client = client
        self._namespace = namespace

    def __getattr__(self, method: str) -> Callable[..., Any]:
        name = f"{self._namespace}.{method}"

        def call(*args: Any, **kwargs: Any) -> Any:
            return self._client.record(name, args, kwargs)

        call.__qualname__ = name
        return call


class FakeClient:
    """Stand-in for ``berserk.Client`` with canned results keyed by ``namespace.method``."""

    def __init__(
        self,
        responses: dict[str, Any] | None = None,
        errors: dict[str, Exception] | None = None,
    ) -> None:
        self.responses = dict(responses or {})
        self.errors = dict(errors or {})
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []
        self._lock = threading.Lock()
        self.account = _ClientNamespace(self, "account")
        self.board = _ClientNamespace(self, "board")
        self.challenges = _ClientNamespace(self, "challenges")

    def record(self, name: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        with self._lock:
            self.calls.append((name, args, kwargs))
        error = self.errors.get(name)
        if error is not None:
            raise error
        return self.responses.get(name)

    @property
    def call_names(self) -> list[str]:
        return [name for name, _, _ in self.calls]


class FakeTransport:
    """Records calls and serves canned streams keyed by path."""

    read_timeout = 1.0

    def __init__(
        self,
        streams: dict[str, FakeResponse | Callable[[], FakeResponse]] | None = None,
        *,
        client_responses: dict[str, Any] | None = None,
        client_errors: dict[str, Exception] | None = None,
        post_errors: dict[str, Exception] | None = None,
        on_post: Callable[[str], None] | None = None,
    ) -> None:
        self.streams = dict(streams or {})
        self.client = FakeClient(client_responses, client_errors)
        self.post_errors = dict(post_errors or {})
        self.on_post = on_post
        self.posts: list[tuple[str, Any, dict[str, Any]]] = []
        self.opened: list[str] = []
        self.post_responses: list[FakeResponse] = []
        self.closed = False
        self._lock = threading.Lock()

    @contextmanager
    def stream(self, path: str, **kwargs: Any) -> Iterator[FakeResponse]:
        source = self.streams.get(path)
        if source is None:
            raise TransportError("Not Found", path=path, status_code=404)
        response = source() if callable(source) else source
        with self._lock:
            self.opened.append(path)
        try:
            yield response
        finally:
            response.close()

    def post(self, path: str, data: Any = None, *, stream: bool = False, **kwargs: Any) -> FakeResponse:
        with self._lock:
            self.posts.append((path, data, kwargs))
        error = self.post_errors.get(path)
        if error is not None:
            raise error
        if self.on_post is not None:
            self.on_post(path)
        response = FakeResponse()
        self.post_responses.append(response)
        return response

    def call(self, method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        return method(*args, **kwargs)

    def close(self) -> None:
        self.closed = True

    @property
    def post_paths(self) -> list[str]:
        return [path for path, _, _ in self.posts]


def challenge_event(challenge_id: str, *, name: str = "opponent") -> dict[str, Any]:
    return {
        "type": "challenge",
        "challenge": {
            "id": challenge_id,
            "status": "created",
            "challenger": {"id": name.lower(), "name": name, "rating": 1500, "online": True, "lag": 4},
            "variant": {"key": "standard", "name": "Standard", "short": "Std"},
            "rated": False,
            "color": "random",
            "speed": "blitz",
        },
    }


def game_start_event(game_id: str, *, color: str = "white") -> dict[str, Any]:
    return {
        "type": "gameStart",
        "game": {
            "id": game_id,
            "fullId": f"{game_id}abcd",
            "color": color,
            "fen": "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1",
            "isMyTurn": color == "white",
            "opponent": {"id": "rival", "username": "Rival", "rating": 1520},
        },
    }


def game_full_record(game_id: str, moves: str = "") -> dict[str, Any]:
    return {
        "type": "gameFull",
        "id": game_id,
        "variant": {"key": "standard", "name": "Standard", "short": "Std"},
        "clock": {"initial": 600000, "increment": 0},
        "speed": "rapid",
        "rated": False,
        "white": {"id": "me", "name": "Me", "rating": 1500},
        "black": {"id": "rival", "name": "Rival", "rating": 1520},
        "initialFen": "startpos",
        "state": {"type": "gameState", "moves": moves, "wtime": 600000, "btime": 600000, "status": "started"},
    }


def game_state_record(moves: str, *, status: str = "started", winner: str | None = None) -> dict[str, Any]:
    record: dict[str, Any] = {
        "type": "gameState",
        "moves": moves,
        "wtime": 590000,
        "btime": 595000,
        "winc": 0,
        "binc": 0,
        "status": status,
    }
    if winner is not None:
        record["winner"] = winner
    return record
