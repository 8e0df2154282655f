"""
boardlink.errors
================

Exception hierarchy for the board client. Each exception keeps the context
needed for structured logging and for mapping to an HTTP response at the
API edge.
"""

from __future__ import annotations

from typing import Any


class LichessError(Exception):
    """Base exception for all boardlink errors."""


class TransportError(LichessError):
    """Network or authorization failure on an authenticated Lichess call."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        status_code: int | None = None,
        cause: dict[str, Any] | None = None,
    ) -> None:
        self.path = path
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)


class StreamDecodeError(LichessError):
    """A streamed record was malformed or the stream broke mid-read."""

    def __init__(self, source: str, line_number: int, reason: str) -> None:
        self.source = source
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"{source}: line {line_number}: {reason}")


class StreamTimeoutError(LichessError):
    """No data arrived on a stream within the configured read timeout."""

    def __init__(self, source: str, timeout_sec: float | None) -> None:
        self.source = source
        self.timeout_sec = timeout_sec
        super().__init__(f"{source}: no data within {timeout_sec} seconds")


class WatcherStreamClosedError(LichessError):
    """The event stream ended before a game started."""

    def __init__(self) -> None:
        super().__init__("Event stream closed before a gameStart event was received")


class GameAlreadyActiveError(LichessError):
    """A new game search was requested while a game is still being streamed."""

    def __init__(self, game_id: str) -> None:
        self.game_id = game_id
        super().__init__(f"Game {game_id} is still active")


class SearchInProgressError(LichessError):
    """Another find-and-start-game call is already running on this session."""

    def __init__(self) -> None:
        super().__init__("A game search is already in progress")


class InvalidChallengeDecisionError(LichessError):
    """The challenge decision callback returned neither accept, decline nor ignore."""

    def __init__(self, challenge_id: str, decision: Any) -> None:
        self.challenge_id = challenge_id
        self.decision = decision
        super().__init__(f"Invalid decision {decision!r} for challenge {challenge_id}")


class OperationCancelledError(LichessError):
    """The operation was abandoned through its cancel token."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} was cancelled")


class NoActiveGameError(LichessError):
    """A game operation was requested but no game is bound to the session."""

    def __init__(self) -> None:
        super().__init__("No game is bound to this session")


class ChannelClosedError(LichessError):
    """A record was sent on a board channel that is already closed."""

    def __init__(self, game_id: str | None = None) -> None:
        self.game_id = game_id
        super().__init__(f"Board channel for game {game_id} is closed")
