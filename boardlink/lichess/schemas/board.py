from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import ConfigDict, Field, TypeAdapter

from boardlink.lichess.schemas.api import APIModel
from boardlink.lichess.schemas.events import Variant


class BoardModel(APIModel):
    """Inbound board stream record, republished exactly as received."""

    model_config = ConfigDict(str_strip_whitespace=False)


class PlayerSummary(BoardModel):
    """Compact player descriptor in board stream payloads."""

    id: str | None = None
    name: str | None = None
    title: str | None = None
    rating: int | None = None
    provisional: bool | None = None
    ai_level: int | None = Field(default=None, alias="aiLevel")


class Clock(BoardModel):
    initial: int | None = Field(default=None, description="Initial time in milliseconds.")
    increment: int | None = Field(default=None, description="Increment in milliseconds.")


class GameState(BoardModel):
    """Incremental game state event payload from board stream."""

    type: Literal["gameState"] = "gameState"
    moves: str = Field(default="", description="Space-separated UCI moves.")
    status: str | None = None
    winner: str | None = None
    wtime: int | None = Field(default=None, description="White remaining milliseconds.")
    btime: int | None = Field(default=None, description="Black remaining milliseconds.")
    winc: int | None = Field(default=None, description="White increment milliseconds.")
    binc: int | None = Field(default=None, description="Black increment milliseconds.")
    wdraw: bool | None = Field(default=None, description="White draw offer state.")
    bdraw: bool | None = Field(default=None, description="Black draw offer state.")
    wtakeback: bool | None = Field(default=None, description="White takeback proposal state.")
    btakeback: bool | None = Field(default=None, description="Black takeback proposal state.")

    @property
    def move_list(self) -> list[str]:
        return self.moves.split()


class GameFull(BoardModel):
    """Initial full game payload from board stream."""

    type: Literal["gameFull"] = "gameFull"
    id: str | None = None
    variant: Variant | None = None
    clock: Clock | None = None
    speed: str | None = None
    rated: bool | None = None
    created_at: int | None = Field(default=None, alias="createdAt")
    white: PlayerSummary | None = None
    black: PlayerSummary | None = None
    initial_fen: str | None = Field(default=None, alias="initialFen")
    state: GameState | None = None


class ChatLine(BoardModel):
    """Chat message posted in the game's player or spectator room."""

    type: Literal["chatLine"] = "chatLine"
    username: str
    text: str
    room: str


class OpponentGone(BoardModel):
    """Opponent left the game; a win can be claimed after the countdown."""

    type: Literal["opponentGone"] = "opponentGone"
    gone: bool
    claim_win_in_seconds: int | None = Field(default=None, alias="claimWinInSeconds")


BoardMessage = Annotated[
    GameFull | GameState | ChatLine | OpponentGone,
    Field(discriminator="type"),
]

_BOARD_MESSAGE_ADAPTER: TypeAdapter[Any] = TypeAdapter(BoardMessage)


def parse_board_message(payload: Any) -> GameFull | GameState | ChatLine | OpponentGone:
    return _BOARD_MESSAGE_ADAPTER.validate_python(payload)
