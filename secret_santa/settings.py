# secret_santa/settings.py
from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel

_DEFAULT_ROSTER = str(Path(__file__).resolve().parent / "data" / "roster.json")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "y", "on")


class Settings(BaseModel):
    APP_NAME: str = "secret-santa-draw"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Dev
    LOG_LEVEL: str = "INFO"

    # Roster (static configuration)
    ROSTER_PATH: str = _DEFAULT_ROSTER

    # Sessions
    ADMIN_SECRET_CODE: str = ""
    SESSION_COOKIE_NAME: str = "secret-santa-session"
    SESSION_COOKIE_SECURE: bool = False
    SESSION_MAX_AGE_SEC: int = 60 * 60 * 24 * 7

    # Presence
    HEARTBEAT_INTERVAL_SEC: int = 30
    PRESENCE_STALE_SEC: int = 60

    # Offer raw legal options when no option keeps the draw solvable
    ALLOW_UNSAFE_OPTIONS: bool = True

    # Broadcast channel: "local" (in-process) or "redis" (pub/sub)
    BROADCAST_BACKEND: str = "local"
    REDIS_URL: str = "redis://localhost:6379/0"
    BROADCAST_CHANNEL: str = "secret-santa-game"

    # Comma-separated
    CORS_ALLOWED_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"


def get_settings() -> Settings:
    return Settings(
        APP_NAME=os.getenv("APP_NAME", "secret-santa-draw"),
        HOST=os.getenv("HOST", "0.0.0.0"),
        PORT=int(os.getenv("PORT", "8000")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        ROSTER_PATH=os.getenv("ROSTER_PATH", _DEFAULT_ROSTER),
        ADMIN_SECRET_CODE=os.getenv("ADMIN_SECRET_CODE", ""),
        SESSION_COOKIE_NAME=os.getenv("SESSION_COOKIE_NAME", "secret-santa-session"),
        SESSION_COOKIE_SECURE=_flag("SESSION_COOKIE_SECURE", "false"),
        SESSION_MAX_AGE_SEC=int(os.getenv("SESSION_MAX_AGE_SEC", str(60 * 60 * 24 * 7))),
        HEARTBEAT_INTERVAL_SEC=int(os.getenv("HEARTBEAT_INTERVAL_SEC", "30")),
        PRESENCE_STALE_SEC=int(os.getenv("PRESENCE_STALE_SEC", "60")),
        ALLOW_UNSAFE_OPTIONS=_flag("ALLOW_UNSAFE_OPTIONS", "true"),
        BROADCAST_BACKEND=os.getenv("BROADCAST_BACKEND", "local").lower(),
        REDIS_URL=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        BROADCAST_CHANNEL=os.getenv("BROADCAST_CHANNEL", "secret-santa-game"),
        CORS_ALLOWED_ORIGINS=os.getenv(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ),
    )
