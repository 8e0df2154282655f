from __future__ import annotations

from datetime import datetime

from pydantic import Field

from boardlink.lichess.schemas.api import APIModel


class ProfileDetails(APIModel):
    bio: str | None = None
    country: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    links: str | None = None
    location: str | None = None


class PerfType(APIModel):
    games: int | None = None
    rating: int | None = None
    rd: int | None = None
    prog: int | None = None
    prov: bool | None = None


class Count(APIModel):
    all: int | None = None
    rated: int | None = None
    ai: int | None = None
    draw: int | None = None
    draw_h: int | None = Field(default=None, alias="drawH")
    loss: int | None = None
    loss_h: int | None = Field(default=None, alias="lossH")
    win: int | None = None
    win_h: int | None = Field(default=None, alias="winH")
    bookmark: int | None = None
    playing: int | None = None
    imported: int | None = Field(default=None, alias="import")
    me: int | None = None


class PlayTime(APIModel):
    total: int | None = None
    tv: int | None = None


class AccountProfile(APIModel):
    """Public account profile from `/api/account`."""

    id: str
    username: str
    title: str | None = None
    online: bool | None = None
    playing: str | bool | None = None
    streaming: bool | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    seen_at: datetime | None = Field(default=None, alias="seenAt")
    profile: ProfileDetails | None = None
    nb_followers: int | None = Field(default=None, alias="nbFollowers")
    nb_following: int | None = Field(default=None, alias="nbFollowing")
    completion_rate: int | None = Field(default=None, alias="completionRate")
    language: str | None = None
    count: Count | None = None
    perfs: dict[str, PerfType] = Field(
        default_factory=dict,
        description="Performance ratings by time control.",
    )
    patron: bool | None = None
    disabled: bool | None = None
    tos_violation: bool | None = Field(default=None, alias="tosViolation")
    play_time: PlayTime | None = Field(default=None, alias="playTime")


class Preferences(APIModel):
    """Subset of `/api/account/preferences` the client exposes."""

    dark: bool | None = None
    transp: bool | None = None
    bg_img: str | None = Field(default=None, alias="bgImg")
    is3d: bool | None = None
    theme: str | None = None
    piece_set: str | None = Field(default=None, alias="pieceSet")
    theme3d: str | None = None
    piece_set3d: str | None = Field(default=None, alias="pieceSet3d")
    sound_set: str | None = Field(default=None, alias="soundSet")
    blindfold: int | None = None
    auto_queen: int | None = Field(default=None, alias="autoQueen")
    auto_threefold: int | None = Field(default=None, alias="autoThreefold")
    takeback: int | None = None
    more_time: int | None = Field(default=None, alias="moretime")
    clock_tenths: int | None = Field(default=None, alias="clockTenths")
    clock_bar: bool | None = Field(default=None, alias="clockBar")
    clock_sound: bool | None = Field(default=None, alias="clockSound")
    premove: bool | None = None
    animation: int | None = None
    captured: bool | None = None
    follow: bool | None = None
    highlight: bool | None = None
    destination: bool | None = None
    coords: int | None = None
    replay: int | None = None
    challenge: int | None = None
    message: int | None = None
    submit_move: int | None = Field(default=None, alias="submitMove")
    confirm_resign: int | None = Field(default=None, alias="confirmResign")
    insight_share: int | None = Field(default=None, alias="insightShare")
    keyboard_move: int | None = Field(default=None, alias="keyboardMove")
    zen: int | None = None
    move_event: int | None = Field(default=None, alias="moveEvent")
    rook_castle: int | None = Field(default=None, alias="rookCastle")


class AccountPreferences(APIModel):
    prefs: Preferences = Field(default_factory=Preferences)
    language: str | None = None
