# secret_santa/transport/dispatcher.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from secret_santa.domain.admin.handlers import (
    handle_draw_for_player,
    handle_quick_draw_all,
    handle_replace_state,
    handle_reset,
    handle_set_next_result,
    handle_skip_turn,
    handle_start_game,
    handle_unlock_turn,
)
from secret_santa.domain.lifecycle.handlers import (
    handle_admin_login,
    handle_heartbeat,
    handle_identify,
    handle_logout,
    handle_session_status,
    handle_snapshot,
)
from secret_santa.domain.turn.handlers import (
    handle_make_selection,
    handle_prepare_options,
    handle_random_draw,
)
from secret_santa.store.models import Caller
from secret_santa.transport.protocols import (
    InAdminLogin,
    InDrawForPlayer,
    InHeartbeat,
    InIdentify,
    InLogout,
    InMakeSelection,
    InPrepareOptions,
    InQuickDrawAll,
    InRandomDraw,
    InReplaceState,
    InReset,
    InSessionStatus,
    InSetNextResult,
    InSkipTurn,
    InSnapshot,
    InStartGame,
    InUnlockTurn,
    OutError,
    OutgoingEvent,
    parse_incoming,
)

logger = logging.getLogger(__name__)

_HANDLERS = {
    InSnapshot: handle_snapshot,
    InReplaceState: handle_replace_state,
    InReset: handle_reset,
    InPrepareOptions: handle_prepare_options,
    InMakeSelection: handle_make_selection,
    InRandomDraw: handle_random_draw,
    InStartGame: handle_start_game,
    InSkipTurn: handle_skip_turn,
    InUnlockTurn: handle_unlock_turn,
    InSetNextResult: handle_set_next_result,
    InDrawForPlayer: handle_draw_for_player,
    InQuickDrawAll: handle_quick_draw_all,
    InIdentify: handle_identify,
    InAdminLogin: handle_admin_login,
    InLogout: handle_logout,
    InHeartbeat: handle_heartbeat,
    InSessionStatus: handle_session_status,
}


async def dispatch_message(
    *,
    app,
    caller: Optional[Caller],
    raw: Dict[str, Any],
) -> List[Dict[str, Any]]:
    """
    Transport layer calls this.
    - Parses + validates raw JSON
    - Runs the handler inside the state critical section
    - Queues room events on the bus before the section is released
    - Returns the sender's events as JSON dicts
    """
    try:
        msg = parse_incoming(raw)
    except (ValidationError, ValueError) as e:
        err = OutError(code="BAD_MESSAGE", message=str(e), kind="bad_message").model_dump()
        return [err]

    handler = _HANDLERS.get(type(msg))
    if handler is None:
        err = OutError(code="NOT_IMPLEMENTED", message=f"Handler not implemented for type={msg.type}", kind="bad_message")
        return [err.model_dump()]

    repo = app.state.repo
    async with repo.lock:
        to_sender, to_room = await handler(app=app, caller=caller, msg=msg)
        if to_room:
            app.state.bus.publish_nowait(_dump(to_room))

    for ev in to_sender:
        if isinstance(ev, OutError) and ev.kind == "concurrency":
            logger.info("Rejected %s from %s: %s", msg.type, caller.participant_id or caller.role, ev.code)
    return _dump(to_sender)


def _dump(events: List[OutgoingEvent]) -> List[Dict[str, Any]]:
    """
    Convert pydantic events -> JSON dicts.
    """
    return [e.model_dump(mode="json") for e in events]
