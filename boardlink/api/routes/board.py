from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from boardlink.api.deps import SessionDep
from boardlink.errors import LichessError
from boardlink.lichess.schemas.account import AccountProfile
from boardlink.lichess.schemas.api import (
    ApiError,
    ApiMessage,
    ChatRequest,
    DrawRequest,
    GameInfoResponse,
    MoveRequest,
    MoveResponse,
    SeekRequest,
)
from boardlink.lichess.services.concurrency import CancelToken
from boardlink.lichess.services.lichess import to_http_exception
from boardlink.lichess.services.session import Game
from boardlink.lichess.services.streaming import iter_sse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/board", tags=["board"])

T = TypeVar("T")

_DISCONNECT_POLL_SEC = 0.5


def _game_info(game: Game) -> GameInfoResponse:
    opponent = game.info.opponent.username if game.info.opponent is not None else None
    return GameInfoResponse(
        game_id=game.id,
        active=game.active,
        color=game.info.color,
        opponent=opponent,
    )


async def _call(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    except LichessError as exc:
        raise to_http_exception(exc) from exc


def _sse_stream(
    request: Request,
    factory: Callable[[CancelToken], Iterator[Any]],
    *,
    typed_events: bool = False,
) -> StreamingResponse:
    return StreamingResponse(
        iter_sse(request, factory, typed_events=typed_events),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/health", response_model=ApiMessage)
def health() -> ApiMessage:
    return ApiMessage(ok=True, message="ok")


@router.get(
    "/account",
    response_model=AccountProfile,
    responses={503: {"model": ApiError, "description": "Token not configured."}},
)
async def get_account(session: SessionDep) -> AccountProfile:
    return await _call(session.profile)


@router.post(
    "/games",
    response_model=GameInfoResponse,
    responses={
        401: {"model": ApiError, "description": "Token missing required scopes."},
        409: {"model": ApiError, "description": "A game is already active or being searched for."},
        502: {"model": ApiError, "description": "Event stream closed or returned malformed data."},
        503: {"model": ApiError, "description": "Token not configured."},
    },
)
async def find_game(request: Request, payload: SeekRequest, session: SessionDep) -> GameInfoResponse:
    cancel = CancelToken()
    task = asyncio.ensure_future(
        asyncio.to_thread(session.find_and_start_game, payload, cancel=cancel)
    )
    try:
        while not task.done():
            if await request.is_disconnected():
                logger.info("Client disconnected during game search; cancelling")
                cancel.cancel()
                break
            await asyncio.wait({task}, timeout=_DISCONNECT_POLL_SEC)
        game = await task
    except LichessError as exc:
        raise to_http_exception(exc) from exc
    finally:
        cancel.cancel()
    return _game_info(game)


@router.get(
    "/game",
    response_model=GameInfoResponse,
    responses={404: {"model": ApiError, "description": "No game is bound."}},
)
def get_game(session: SessionDep) -> GameInfoResponse:
    game = session.current_game
    if game is None:
        raise HTTPException(status_code=404, detail={"error": "No game is bound to this session"})
    return _game_info(game)


@router.delete("/game", response_model=ApiMessage)
async def end_game(session: SessionDep) -> ApiMessage:
    await _call(session.end_game)
    return ApiMessage(ok=True, message="game released")


@router.get(
    "/game/stream",
    responses={404: {"model": ApiError, "description": "No game is bound."}},
)
async def stream_game(request: Request, session: SessionDep) -> StreamingResponse:
    game = session.current_game
    if game is None:
        raise HTTPException(status_code=404, detail={"error": "No game is bound to this session"})
    return _sse_stream(request, game.updates, typed_events=True)


@router.post(
    "/game/move",
    response_model=MoveResponse,
    responses={
        400: {"model": ApiError, "description": "Illegal move or invalid game state."},
        404: {"model": ApiError, "description": "No game is bound."},
    },
)
async def make_move(payload: MoveRequest, session: SessionDep) -> MoveResponse:
    await _call(session.make_move, payload.uci, offering_draw=payload.offering_draw)
    game = session.current_game
    return MoveResponse(ok=True, game_id=game.id if game else "", move=payload.uci)


@router.post("/game/chat", response_model=ApiMessage)
async def write_chat(payload: ChatRequest, session: SessionDep) -> ApiMessage:
    await _call(session.write_chat, payload.text, payload.room)
    return ApiMessage(ok=True)


@router.post("/game/abort", response_model=ApiMessage)
async def abort_game(session: SessionDep) -> ApiMessage:
    await _call(session.abort)
    return ApiMessage(ok=True, message="aborted")


@router.post("/game/resign", response_model=ApiMessage)
async def resign_game(session: SessionDep) -> ApiMessage:
    await _call(session.resign)
    return ApiMessage(ok=True, message="resigned")


@router.post("/game/draw", response_model=ApiMessage)
async def handle_draw(payload: DrawRequest, session: SessionDep) -> ApiMessage:
    await _call(session.handle_draw, payload.accept)
    return ApiMessage(ok=True, message="draw offered" if payload.accept else "draw declined")
