from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI

from boardlink.api.routes import board
from boardlink.core.config import settings

api_router = APIRouter()
api_router.include_router(board.router)


def create_app() -> FastAPI:
    logging.getLogger("boardlink").setLevel(settings.LOG_LEVEL)
    application = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
    )
    application.include_router(api_router, prefix=settings.API_V1_STR)
    return application


app = create_app()
