from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "boardlink"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    LICHESS_TOKEN: str | None = None
    LICHESS_URL: str = "https://lichess.org"
    LICHESS_CONNECT_TIMEOUT_SEC: float = Field(default=10.0, gt=0)
    # Lichess sends keep-alive newlines on idle streams every few seconds.
    LICHESS_READ_TIMEOUT_SEC: float | None = Field(default=60.0, gt=0)

    BOARD_CHANNEL_MAXSIZE: int = Field(default=1, ge=0)
    STREAM_POLL_INTERVAL_SEC: float = Field(default=0.1, gt=0)
    CHALLENGE_POLICY: Literal["ignore", "accept", "decline"] = "ignore"


settings = Settings()
