from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

UCI_MOVE_PATTERN = r"^[a-h][1-8][a-h][1-8][nbrq]?$"
RATING_RANGE_PATTERN = r"^\d{3,4}-\d{3,4}$"


class APIModel(BaseModel):
    """Base model settings shared across API schemas."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ApiMessage(APIModel):
    """Simple success/failure response payload."""

    ok: bool = Field(description="Whether the request completed successfully.", default=True)
    message: str | None = Field(
        default=None,
        description="Optional human-readable status message.",
    )


class ApiError(APIModel):
    """Standardized downstream API error details."""

    error: str = Field(description="Primary error message.")
    status_code: int | None = Field(
        default=None,
        description="HTTP status code from the upstream source, if available.",
    )
    cause: dict[str, Any] | None = Field(
        default=None,
        description="Raw structured error payload returned by Lichess, if available.",
    )


class SeekRequest(APIModel):
    """Matchmaking parameters for a public seek."""

    minutes: int = Field(
        default=10,
        ge=1,
        le=180,
        description="Initial clock time in minutes.",
        examples=[5, 10, 15],
    )
    increment: int = Field(
        default=0,
        ge=0,
        le=180,
        description="Per-move increment in seconds.",
        examples=[0, 3, 5],
    )
    rated: bool = Field(
        default=False,
        description="Whether the seeked game should be rated.",
    )
    color: Literal["random", "white", "black"] = Field(
        default="random",
        description="Preferred color for the created game.",
    )
    variant: str = Field(
        default="standard",
        description="Lichess variant key (for example: standard, chess960).",
    )
    rating_range: str | None = Field(
        default=None,
        alias="ratingRange",
        pattern=RATING_RANGE_PATTERN,
        description="Accepted opponent rating range, e.g. 1500-1800.",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "minutes": 10,
                "increment": 5,
                "rated": False,
                "color": "random",
                "variant": "standard",
                "ratingRange": "1500-1800",
            }
        }
    )

    @model_validator(mode="after")
    def validate_rating_range(self) -> SeekRequest:
        if self.rating_range:
            low, high = (int(part) for part in self.rating_range.split("-"))
            if low > high:
                raise ValueError("ratingRange lower bound must not exceed the upper bound")
        return self

    def to_form(self) -> dict[str, str]:
        form = {
            "rated": "true" if self.rated else "false",
            "time": str(self.minutes),
            "increment": str(self.increment),
            "variant": self.variant,
            "color": self.color,
        }
        if self.rating_range:
            form["ratingRange"] = self.rating_range
        return form


class MoveRequest(APIModel):
    """Request body for posting a move in UCI notation."""

    uci: str = Field(
        min_length=4,
        max_length=5,
        pattern=UCI_MOVE_PATTERN,
        description="Move in UCI notation, e.g. e2e4 or e7e8q.",
        examples=["e2e4", "a7a8q"],
    )
    offering_draw: bool = Field(
        default=False,
        description="Whether to offer a draw alongside the move.",
    )

    @field_validator("uci", mode="before")
    @classmethod
    def normalize_uci(cls, value: object) -> object:
        if isinstance(value, str):
            return value.lower()
        return value

    model_config = ConfigDict(
        json_schema_extra={"example": {"uci": "e2e4", "offering_draw": False}}
    )


class MoveResponse(APIModel):
    """Response payload for a move submission."""

    ok: bool = Field(default=True, description="Whether move submission succeeded.")
    game_id: str = Field(description="Lichess game id.")
    move: str = Field(description="Normalized UCI move that was submitted.")


class ChatRequest(APIModel):
    """Request body for posting a chat line in the current game."""

    text: str = Field(min_length=1, max_length=140, description="Chat message text.")
    room: Literal["player", "spectator"] = Field(default="player", description="Chat room.")


class DrawRequest(APIModel):
    """Request body for answering or offering a draw."""

    accept: bool = Field(description="True to offer or accept a draw, False to decline.")


class GameInfoResponse(APIModel):
    """The game currently bound to the session."""

    ok: bool = Field(default=True)
    game_id: str = Field(description="Lichess game id.")
    active: bool = Field(description="Whether the board stream is still being published.")
    color: str | None = Field(default=None, description="Color played by the account, if known.")
    opponent: str | None = Field(default=None, description="Opponent username, if known.")
