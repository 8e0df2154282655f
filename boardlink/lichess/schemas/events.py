from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import ConfigDict, Field

from boardlink.lichess.schemas.api import APIModel


class FrozenModel(APIModel):
    model_config = ConfigDict(frozen=True)


class Variant(FrozenModel):
    """Rules descriptor attached to challenges and games."""

    key: str = "standard"
    name: str | None = None
    short: str | None = None


class Challenger(FrozenModel):
    """Account that issued a challenge."""

    id: str
    name: str | None = None
    title: str | None = None
    rating: int | None = None
    provisional: bool | None = None
    patron: bool | None = None
    online: bool | None = None
    lag: int | None = Field(default=None, description="Network lag estimate in milliseconds.")


class TimeControl(FrozenModel):
    type: str | None = None
    limit: int | None = None
    increment: int | None = None
    show: str | None = None


class Challenge(FrozenModel):
    """Incoming challenge as delivered on the event stream."""

    id: str
    status: str | None = None
    challenger: Challenger
    variant: Variant = Field(default_factory=Variant)
    rated: bool = False
    color: str | None = Field(default=None, description="Requested color: white, black or random.")
    speed: str | None = None
    time_control: TimeControl | None = Field(default=None, alias="timeControl")


class Opponent(FrozenModel):
    id: str | None = None
    username: str | None = None
    rating: int | None = None


class GameStartInfo(FrozenModel):
    """Game payload carried by a gameStart event."""

    id: str
    full_id: str | None = Field(default=None, alias="fullId")
    color: str | None = None
    fen: str | None = None
    is_my_turn: bool | None = Field(default=None, alias="isMyTurn")
    rated: bool | None = None
    speed: str | None = None
    source: str | None = None
    variant: Variant | None = None
    opponent: Opponent | None = None


class ChallengeEvent(APIModel):
    """Incoming challenge event from the account stream."""

    type: Literal["challenge"] = "challenge"
    challenge: Challenge


class GameStartEvent(APIModel):
    """Game start event from the account stream."""

    type: Literal["gameStart"] = "gameStart"
    game: GameStartInfo


class OtherEvent(APIModel):
    """Any account stream event the watcher does not act on."""

    type: str
    payload: dict[str, Any] = Field(default_factory=dict)


IncomingEvent = Union[ChallengeEvent, GameStartEvent, OtherEvent]

_EVENT_MODELS: dict[str, type[APIModel]] = {
    "challenge": ChallengeEvent,
    "gameStart": GameStartEvent,
}


def parse_event(payload: Any) -> IncomingEvent:
    """Peek the ``type`` tag, then validate the matching event shape."""
    if not isinstance(payload, dict):
        raise ValueError(f"event must be a JSON object, got {type(payload).__name__}")
    event_type = payload.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise ValueError("event is missing its type")
    model = _EVENT_MODELS.get(event_type)
    if model is None:
        return OtherEvent(type=event_type, payload=payload)
    return model.model_validate(payload)
