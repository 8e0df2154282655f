from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from boardlink.core.config import Settings
from boardlink.errors import GameAlreadyActiveError, NoActiveGameError, SearchInProgressError
from boardlink.lichess.schemas.account import AccountPreferences, AccountProfile
from boardlink.lichess.schemas.api import SeekRequest
from boardlink.lichess.schemas.board import ChatLine, GameFull, GameState, OpponentGone
from boardlink.lichess.schemas.events import GameStartInfo
from boardlink.lichess.services.concurrency import CancelToken, spawn, wait_for_future
from boardlink.lichess.services.publisher import BoardChannel, BoardUpdatePublisher
from boardlink.lichess.services.seeker import seek_game
from boardlink.lichess.services.transport import LichessTransport
from boardlink.lichess.services.watcher import (
    DecisionCallback,
    EventWatcher,
    ignore_challenges,
    policy_decider,
)

logger = logging.getLogger(__name__)

BoardRecord = GameFull | GameState | ChatLine | OpponentGone


@dataclass
class Game:
    """A started game and the channel its board updates are published on."""

    id: str
    info: GameStartInfo
    channel: BoardChannel[BoardRecord]
    cancel: CancelToken = field(default_factory=CancelToken)
    publishing: Future[int] | None = None
    # Removes this game's cancel from the session's close callbacks.
    unlink_close: Callable[[], None] = lambda: None

    @property
    def active(self) -> bool:
        return self.publishing is not None and not self.publishing.done()

    def updates(self, cancel: CancelToken | None = None) -> Iterator[BoardRecord]:
        return self.channel.iter_updates(cancel)

    def stop(self, timeout: float | None = None) -> None:
        """Cancel publishing and wait for the publisher thread to finish."""
        self.cancel.cancel()
        self.unlink_close()
        if self.publishing is None:
            return
        try:
            self.publishing.exception(timeout=timeout)
        except FutureTimeoutError:
            logger.warning("Board publisher did not stop in time game_id=%s", self.id)


class LichessSession:
    """One authenticated Lichess account and at most one current game.

    ``find_and_start_game`` is the only writer of the current-game slot.
    """

    def __init__(
        self,
        transport: LichessTransport,
        *,
        decide: DecisionCallback = ignore_challenges,
        channel_maxsize: int = 1,
        poll_interval: float = 0.1,
    ) -> None:
        self._transport = transport
        self._client = transport.client
        self._decide = decide
        self._channel_maxsize = channel_maxsize
        self._poll_interval = poll_interval
        self._closing = CancelToken()
        self._game_lock = threading.Lock()
        self._search_lock = threading.Lock()
        self._profile_lock = threading.Lock()
        self._current_game: Game | None = None
        self._profile: AccountProfile | None = None

    @classmethod
    def from_settings(cls, settings: Settings, *, decide: DecisionCallback | None = None) -> LichessSession:
        transport = LichessTransport(
            settings.LICHESS_TOKEN,
            base_url=settings.LICHESS_URL,
            connect_timeout=settings.LICHESS_CONNECT_TIMEOUT_SEC,
            read_timeout=settings.LICHESS_READ_TIMEOUT_SEC,
        )
        return cls(
            transport,
            decide=decide if decide is not None else policy_decider(settings.CHALLENGE_POLICY),
            channel_maxsize=settings.BOARD_CHANNEL_MAXSIZE,
            poll_interval=settings.STREAM_POLL_INTERVAL_SEC,
        )

    def __enter__(self) -> LichessSession:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # Account

    def profile(self) -> AccountProfile:
        with self._profile_lock:
            if self._profile is None:
                account = self._transport.call(self._client.account.get)
                self._profile = AccountProfile.model_validate(account)
                logger.info("Profile loaded username=%s", self._profile.username)
            return self._profile

    def email(self) -> str | None:
        return self._transport.call(self._client.account.get_email)

    def preferences(self) -> AccountPreferences:
        return AccountPreferences.model_validate(self._transport.call(self._client.account.get_preferences))

    def kid_mode(self) -> bool:
        return bool(self._transport.call(self._client.account.get_kid_mode))

    def set_kid_mode(self, enabled: bool) -> None:
        self._transport.call(self._client.account.set_kid_mode, enabled)

    # Current game

    @property
    def current_game(self) -> Game | None:
        with self._game_lock:
            return self._current_game

    def find_and_start_game(
        self,
        seek: SeekRequest,
        *,
        decide: DecisionCallback | None = None,
        cancel: CancelToken | None = None,
    ) -> Game:
        """Seek a game, wait for it to start, then bind it and start streaming it.

        Raises :class:`GameAlreadyActiveError` while the current game is still
        streaming; that game and its channel are left untouched.
        """
        if not self._search_lock.acquire(blocking=False):
            raise SearchInProgressError()
        try:
            current = self.current_game
            if current is not None and current.active:
                raise GameAlreadyActiveError(current.id)

            token = CancelToken()
            unlinks = [self._closing.on_cancel(token.cancel)]
            if cancel is not None:
                unlinks.append(cancel.on_cancel(token.cancel))
            try:
                token.raise_if_cancelled("find game")
                info = self._rendezvous(seek, decide or self._decide, token)
            finally:
                token.cancel()
                for unlink in unlinks:
                    unlink()
            return self._bind_game(info)
        finally:
            self._search_lock.release()

    def _rendezvous(self, seek: SeekRequest, decide: DecisionCallback, token: CancelToken) -> GameStartInfo:
        watcher = EventWatcher(self._transport, decide, cancel=token)
        watching = spawn(watcher.run, name="lichess-event-watcher")

        while not watcher.attached.wait(self._poll_interval):
            token.raise_if_cancelled("find game")
            if watching.done():
                # Failed before attaching; surfaces the watcher's error.
                return watching.result()

        try:
            handle = seek_game(self._transport, seek)
        except Exception:
            logger.warning("Seek failed; abandoning game search")
            token.cancel()
            raise
        try:
            return wait_for_future(
                watching,
                token,
                poll_interval=self._poll_interval,
                operation="find game",
            )
        finally:
            handle.close()

    def _bind_game(self, info: GameStartInfo) -> Game:
        channel: BoardChannel[BoardRecord] = BoardChannel(
            self._channel_maxsize,
            poll_interval=self._poll_interval,
            name=info.id,
        )
        game = Game(id=info.id, info=info, channel=channel)
        game.unlink_close = self._closing.on_cancel(game.cancel.cancel)
        publisher = BoardUpdatePublisher(self._transport, game.id, channel, cancel=game.cancel)
        game.publishing = publisher.start()
        game.publishing.add_done_callback(lambda _: game.unlink_close())
        with self._game_lock:
            self._current_game = game
        logger.info("Game bound game_id=%s color=%s", game.id, info.color)
        return game

    def board_updates(self, cancel: CancelToken | None = None) -> Iterator[BoardRecord]:
        return self._require_game().updates(cancel)

    def end_game(self, timeout: float | None = 5.0) -> None:
        """Stop streaming the current game and clear the slot."""
        with self._game_lock:
            game = self._current_game
        if game is None:
            return
        game.stop(timeout)
        with self._game_lock:
            if self._current_game is game:
                self._current_game = None
        logger.info("Game released game_id=%s", game.id)

    def _require_game(self) -> Game:
        game = self.current_game
        if game is None:
            raise NoActiveGameError()
        return game

    # Game actions

    def make_move(self, uci: str, *, offering_draw: bool = False) -> None:
        game = self._require_game()
        self._transport.call(self._client.board.make_move, game.id, uci)
        if offering_draw:
            self._transport.call(self._client.board.offer_draw, game.id)

    def write_chat(self, text: str, room: str = "player") -> None:
        game = self._require_game()
        self._transport.call(self._client.board.post_message, game.id, text, spectator=room == "spectator")

    def abort(self) -> None:
        game = self._require_game()
        self._transport.call(self._client.board.abort_game, game.id)

    def resign(self) -> None:
        game = self._require_game()
        self._transport.call(self._client.board.resign_game, game.id)

    def handle_draw(self, accept: bool) -> None:
        game = self._require_game()
        self._transport.call(self._client.board.handle_draw_offer, game.id, accept)

    def close(self) -> None:
        self._closing.cancel()
        game = self.current_game
        if game is not None:
            game.stop(timeout=self._poll_interval * 10)
        self._transport.close()
