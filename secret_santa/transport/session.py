# secret_santa/transport/session.py
from __future__ import annotations

import base64
import json
from typing import Any, Dict, List, Mapping, Optional

from fastapi import Request, Response
from pydantic import ValidationError

from secret_santa.settings import get_settings
from secret_santa.store.models import Caller


def encode_session(caller: Caller) -> str:
    raw = json.dumps(caller.model_dump(), separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_session(token: Optional[str]) -> Optional[Caller]:
    """Cookie value -> Caller. Anything unreadable is treated as no session."""
    if not token:
        return None
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
        return Caller.model_validate_json(raw)
    except (ValueError, ValidationError):
        return None


def caller_from_cookies(cookies: Mapping[str, str]) -> Optional[Caller]:
    return decode_session(cookies.get(get_settings().SESSION_COOKIE_NAME))


async def get_caller(request: Request) -> Optional[Caller]:
    """FastAPI dependency."""
    return caller_from_cookies(request.cookies)


def caller_after(caller: Optional[Caller], events: List[Dict[str, Any]]) -> Optional[Caller]:
    """Identity the sender holds once these reply events have been delivered."""
    for ev in events:
        if ev.get("type") == "identified":
            return Caller(role=ev["role"], participant_id=ev.get("participant_id"))
        if ev.get("type") == "logged-out":
            return None
    return caller


def set_session_cookie(response: Response, caller: Caller) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=encode_session(caller),
        max_age=settings.SESSION_MAX_AGE_SEC,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=get_settings().SESSION_COOKIE_NAME)
