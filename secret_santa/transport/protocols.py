# secret_santa/transport/protocols.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from secret_santa.domain.common.types import ErrorKind, Role
from secret_santa.store.models import DrawOptions, DrawResult, GameState


# =========================
# Incoming (Client -> Server)
# =========================

class InBase(BaseModel):
    type: str


# ---- State ----

class InSnapshot(InBase):
    type: Literal["snapshot"] = "snapshot"


class InReplaceState(InBase):
    type: Literal["replace_state"] = "replace_state"
    state: GameState


class InReset(InBase):
    type: Literal["reset"] = "reset"


# ---- Turn ----

class InPrepareOptions(InBase):
    type: Literal["prepare_options"] = "prepare_options"


class InMakeSelection(InBase):
    type: Literal["make_selection"] = "make_selection"
    choice_index: int


class InRandomDraw(InBase):
    type: Literal["draw"] = "draw"


# ---- Admin ----

class InStartGame(InBase):
    type: Literal["start_game"] = "start_game"


class InSkipTurn(InBase):
    type: Literal["skip_turn"] = "skip_turn"


class InUnlockTurn(InBase):
    type: Literal["unlock_turn"] = "unlock_turn"


class InSetNextResult(InBase):
    type: Literal["set_next_result"] = "set_next_result"
    giftee_id: str = Field(min_length=1)


class InDrawForPlayer(InBase):
    type: Literal["draw_for_player"] = "draw_for_player"
    choice_index: int


class InQuickDrawAll(InBase):
    type: Literal["quick_draw_all"] = "quick_draw_all"


# ---- Session / presence ----

class InIdentify(InBase):
    type: Literal["identify"] = "identify"
    participant_id: str = Field(min_length=1)


class InAdminLogin(InBase):
    type: Literal["admin_login"] = "admin_login"
    secret_code: str


class InLogout(InBase):
    type: Literal["logout"] = "logout"


class InHeartbeat(InBase):
    type: Literal["heartbeat"] = "heartbeat"


class InSessionStatus(InBase):
    type: Literal["session_status"] = "session_status"


IncomingMessage = Union[
    InSnapshot,
    InReplaceState,
    InReset,
    InPrepareOptions,
    InMakeSelection,
    InRandomDraw,
    InStartGame,
    InSkipTurn,
    InUnlockTurn,
    InSetNextResult,
    InDrawForPlayer,
    InQuickDrawAll,
    InIdentify,
    InAdminLogin,
    InLogout,
    InHeartbeat,
    InSessionStatus,
]


# =========================
# Outgoing (Server -> Client)
# =========================

class OutBase(BaseModel):
    type: str


class OutError(OutBase):
    type: Literal["error"] = "error"
    code: str
    message: str
    kind: ErrorKind = "validation"


class OutStateSnapshot(OutBase):
    type: Literal["state-snapshot"] = "state-snapshot"
    exists: bool
    state: Optional[GameState] = None


class OutOptionsPrepared(OutBase):
    type: Literal["options-prepared"] = "options-prepared"
    draw_options: DrawOptions
    state: GameState


class OutSelectionRevealing(OutBase):
    type: Literal["selection-revealing"] = "selection-revealing"
    selected_index: Optional[int] = None
    state: GameState
    admin_override: bool = False


class OutDrawExecuted(OutBase):
    type: Literal["draw-executed"] = "draw-executed"
    draw_result: DrawResult
    state: GameState
    admin_override: bool = False


class OutTurnLocked(OutBase):
    type: Literal["turn-locked"] = "turn-locked"
    drawer_id: str
    timestamp: int
    version: int


class OutTurnUnlocked(OutBase):
    type: Literal["turn-unlocked"] = "turn-unlocked"
    drawer_id: Optional[str] = None
    timestamp: int
    version: int
    admin_override: bool = False
    skipped: bool = False


class OutGameStateUpdate(OutBase):
    type: Literal["game-state-update"] = "game-state-update"
    state: GameState


class OutGameReset(OutBase):
    type: Literal["game-reset"] = "game-reset"
    state: GameState


class OutPlayerConnected(OutBase):
    type: Literal["player-connected"] = "player-connected"
    participant_id: str
    display_name: str = ""
    timestamp: int
    version: int


class OutPlayerDisconnected(OutBase):
    type: Literal["player-disconnected"] = "player-disconnected"
    participant_id: str
    timestamp: int
    version: int
    stale: bool = False


class OutAdminSet(OutBase):
    type: Literal["admin-set"] = "admin-set"
    admin_id: str
    timestamp: int
    version: int


class OutIdentified(OutBase):
    type: Literal["identified"] = "identified"
    role: Role
    participant_id: Optional[str] = None
    display_name: Optional[str] = None


class OutLoggedOut(OutBase):
    type: Literal["logged-out"] = "logged-out"


class OutHeartbeatAck(OutBase):
    type: Literal["heartbeat-ack"] = "heartbeat-ack"
    timestamp: int
    interval_sec: int


class OutSessionStatus(OutBase):
    type: Literal["session-status"] = "session-status"
    authenticated: bool
    role: Optional[Role] = None
    participant_id: Optional[str] = None
    display_name: Optional[str] = None


class OutQuickDrawSummary(OutBase):
    type: Literal["quick-draw-summary"] = "quick-draw-summary"
    draws: List[DrawResult] = Field(default_factory=list)
    state: GameState


OutgoingEvent = Union[
    OutError,
    OutStateSnapshot,
    OutOptionsPrepared,
    OutSelectionRevealing,
    OutDrawExecuted,
    OutTurnLocked,
    OutTurnUnlocked,
    OutGameStateUpdate,
    OutGameReset,
    OutPlayerConnected,
    OutPlayerDisconnected,
    OutAdminSet,
    OutIdentified,
    OutLoggedOut,
    OutHeartbeatAck,
    OutSessionStatus,
    OutQuickDrawSummary,
]


# =========================
# Parser helpers
# =========================

_INCOMING_BY_TYPE = {
    "snapshot": InSnapshot,
    "replace_state": InReplaceState,
    "reset": InReset,
    "prepare_options": InPrepareOptions,
    "make_selection": InMakeSelection,
    "draw": InRandomDraw,
    "start_game": InStartGame,
    "skip_turn": InSkipTurn,
    "unlock_turn": InUnlockTurn,
    "set_next_result": InSetNextResult,
    "draw_for_player": InDrawForPlayer,
    "quick_draw_all": InQuickDrawAll,
    "identify": InIdentify,
    "admin_login": InAdminLogin,
    "logout": InLogout,
    "heartbeat": InHeartbeat,
    "session_status": InSessionStatus,
}


def parse_incoming(payload: Dict[str, Any]) -> IncomingMessage:
    """
    Convert raw dict -> validated message model.
    Raises ValueError for a missing/unknown type, ValidationError for bad fields.
    """
    t = payload.get("type") if isinstance(payload, dict) else None
    if not isinstance(t, str):
        raise ValueError("Missing/invalid type")

    cls = _INCOMING_BY_TYPE.get(t)
    if cls is None:
        raise ValueError(f"Unknown message type: {t}")

    return cls.model_validate(payload)
