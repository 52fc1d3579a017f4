# secret_santa/transport/http.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from secret_santa.store.models import Caller
from secret_santa.transport.dispatcher import dispatch_message
from secret_santa.transport.session import (
    caller_after,
    clear_session_cookie,
    get_caller,
    set_session_cookie,
)

router = APIRouter()

_STATUS_BY_KIND = {
    "validation": 400,
    "bad_message": 422,
    "not_found": 404,
    "authorization": 403,
    "phase": 409,
    "concurrency": 409,
    "feasibility": 500,
}


async def _body(request: Request) -> Dict[str, Any]:
    try:
        data = await request.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _respond(events: List[Dict[str, Any]]) -> JSONResponse:
    """
    Map the sender's events onto one HTTP response.
    A leading error decides the status code; otherwise 200 with the event as body.
    """
    if not events:
        return JSONResponse({"ok": True})

    first = events[0]
    if first.get("type") == "error":
        status = _STATUS_BY_KIND.get(first.get("kind"), 400)
        if first.get("code") == "NO_SESSION":
            status = 401
        headers = {"Retry-After": "1"} if first.get("kind") == "concurrency" else None
        return JSONResponse({"error": first}, status_code=status, headers=headers)

    body = first if len(events) == 1 else {"events": events}
    return JSONResponse(body)


async def _run(request: Request, caller: Optional[Caller], raw: Dict[str, Any]) -> JSONResponse:
    events = await dispatch_message(app=request.app, caller=caller, raw=raw)
    return _respond(events)


# ----------------------------
# State
# ----------------------------
@router.get("/state")
async def get_state(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {"type": "snapshot"})


@router.put("/state")
async def replace_state(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {"type": "replace_state", "state": await _body(request)})


@router.delete("/state")
async def reset_state(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {"type": "reset"})


# ----------------------------
# Draw
# ----------------------------
@router.post("/draw/options")
async def prepare_options(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {"type": "prepare_options"})


@router.post("/draw/select")
async def make_selection(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {**await _body(request), "type": "make_selection"})


@router.post("/draw")
async def random_draw(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {"type": "draw"})


# ----------------------------
# Admin
# ----------------------------
@router.post("/admin/start-game")
async def start_game(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {"type": "start_game"})


@router.post("/admin/skip-turn")
async def skip_turn(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {"type": "skip_turn"})


@router.post("/admin/unlock-turn")
async def unlock_turn(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {"type": "unlock_turn"})


@router.post("/admin/set-next-result")
async def set_next_result(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {**await _body(request), "type": "set_next_result"})


@router.post("/admin/draw-for-player")
async def draw_for_player(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {**await _body(request), "type": "draw_for_player"})


@router.post("/admin/quick-draw-all")
async def quick_draw_all(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {"type": "quick_draw_all"})


# ----------------------------
# Session
# ----------------------------
async def _session_change(request: Request, caller: Optional[Caller], raw: Dict[str, Any]) -> JSONResponse:
    events = await dispatch_message(app=request.app, caller=caller, raw=raw)
    response = _respond(events)
    if events and events[0].get("type") != "error":
        after = caller_after(caller, events)
        if after is None:
            clear_session_cookie(response)
        else:
            set_session_cookie(response, after)
    return response


@router.post("/session/identify")
async def identify(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _session_change(request, caller, {**await _body(request), "type": "identify"})


@router.post("/session/admin")
async def admin_login(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _session_change(request, caller, {**await _body(request), "type": "admin_login"})


@router.post("/session/logout")
async def logout(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _session_change(request, caller, {"type": "logout"})


@router.get("/session/status")
async def session_status(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {"type": "session_status"})


@router.post("/session/heartbeat")
async def heartbeat(request: Request, caller: Optional[Caller] = Depends(get_caller)):
    return await _run(request, caller, {"type": "heartbeat"})


# ----------------------------
# Roster
# ----------------------------
@router.get("/roster")
async def get_roster(request: Request):
    return request.app.state.roster.model_dump()
