from __future__ import annotations

import enum
import logging
import threading
from typing import Any, Callable

from boardlink.errors import InvalidChallengeDecisionError, WatcherStreamClosedError
from boardlink.lichess.endpoints import STREAM_EVENT_PATH
from boardlink.lichess.schemas.events import (
    Challenge,
    ChallengeEvent,
    GameStartEvent,
    GameStartInfo,
    parse_event,
)
from boardlink.lichess.services.concurrency import CancelToken
from boardlink.lichess.services.ndjson import iter_ndjson
from boardlink.lichess.services.transport import LichessTransport

logger = logging.getLogger(__name__)


class ChallengeDecision(str, enum.Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    IGNORE = "ignore"


DecisionCallback = Callable[[Challenge], Any]


def ignore_challenges(challenge: Challenge) -> ChallengeDecision:
    return ChallengeDecision.IGNORE


def policy_decider(policy: str) -> DecisionCallback:
    """Build a callback that answers every challenge with the same decision."""
    decision = ChallengeDecision(policy)

    def decide(challenge: Challenge) -> ChallengeDecision:
        return decision

    return decide


def _coerce_decision(value: Any) -> ChallengeDecision | None:
    if isinstance(value, ChallengeDecision):
        return value
    if isinstance(value, str):
        try:
            return ChallengeDecision(value.strip().lower())
        except ValueError:
            return None
    return None


class EventWatcher:
    """Watches the account event stream until a game starts.

    Incoming challenges are answered through ``decide`` while watching. The
    ``attached`` event is set once the event stream has responded, so a seek
    posted afterwards cannot start a game the watcher misses.
    """

    def __init__(
        self,
        transport: LichessTransport,
        decide: DecisionCallback = ignore_challenges,
        *,
        cancel: CancelToken | None = None,
    ) -> None:
        self._transport = transport
        self._decide = decide
        self._cancel = cancel if cancel is not None else CancelToken()
        self.attached = threading.Event()

    def run(self) -> GameStartInfo:
        with self._transport.stream(STREAM_EVENT_PATH) as response:
            unregister = self._cancel.on_cancel(response.close)
            self.attached.set()
            logger.info("Event stream attached")
            try:
                events = iter_ndjson(
                    response.iter_lines(),
                    parse_event,
                    cancel=self._cancel,
                    source="event stream",
                    read_timeout=self._transport.read_timeout,
                )
                for event in events:
                    if isinstance(event, GameStartEvent):
                        logger.info("Game started game_id=%s", event.game.id)
                        return event.game
                    if isinstance(event, ChallengeEvent):
                        self._handle_challenge(event.challenge)
                        continue
                    logger.debug("Ignoring event type=%s", event.type)
            finally:
                unregister()
        raise WatcherStreamClosedError()

    def _handle_challenge(self, challenge: Challenge) -> None:
        logger.info(
            "Challenge received challenge_id=%s challenger=%s variant=%s rated=%s",
            challenge.id,
            challenge.challenger.name or challenge.challenger.id,
            challenge.variant.key,
            challenge.rated,
        )
        raw_decision = self._decide(challenge)
        decision = _coerce_decision(raw_decision)
        if decision is None:
            logger.warning("%s", InvalidChallengeDecisionError(challenge.id, raw_decision))
            return
        if decision is ChallengeDecision.IGNORE:
            logger.info("Challenge left unanswered challenge_id=%s", challenge.id)
            return

        challenges = self._transport.client.challenges
        answer = challenges.accept if decision is ChallengeDecision.ACCEPT else challenges.decline
        self._transport.call(answer, challenge.id)
        logger.info("Challenge answered challenge_id=%s decision=%s", challenge.id, decision.value)
