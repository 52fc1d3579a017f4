# secret_santa/domain/lifecycle/handlers.py
from __future__ import annotations

import hmac
import logging
from typing import List, Optional

from secret_santa.domain.common.validation import is_player
from secret_santa.domain.presence.tracker import mark_offline, sweep_stale, touch_session
from secret_santa.domain.turn.common import Result, no_session_error
from secret_santa.settings import get_settings
from secret_santa.store.models import Caller, Roster
from secret_santa.transport.protocols import (
    InAdminLogin,
    InHeartbeat,
    InIdentify,
    InLogout,
    InSessionStatus,
    InSnapshot,
    OutAdminSet,
    OutError,
    OutgoingEvent,
    OutHeartbeatAck,
    OutIdentified,
    OutLoggedOut,
    OutPlayerConnected,
    OutPlayerDisconnected,
    OutSessionStatus,
    OutStateSnapshot,
)
from secret_santa.util.timeutil import now_ts

logger = logging.getLogger(__name__)


async def handle_snapshot(*, app, caller: Optional[Caller], msg: InSnapshot) -> Result:
    """
    Current state for late joiners and polling clients.
    Does not create the state; sessions gone silent are flipped offline on the way.
    """
    repo = app.state.repo
    state = await repo.peek_state()
    if state is None:
        return [OutStateSnapshot(exists=False)], []

    ts = now_ts()
    flipped = sweep_stale(state, ts, get_settings().PRESENCE_STALE_SEC)
    to_room: List[OutgoingEvent] = []
    if flipped:
        state = await repo.set_state(state)
        logger.info("Presence sweep marked %d session(s) offline: %s", len(flipped), flipped)
        to_room = [
            OutPlayerDisconnected(participant_id=pid, timestamp=ts, version=state.version, stale=True)
            for pid in flipped
        ]
    return [OutStateSnapshot(exists=True, state=state)], to_room


async def handle_identify(*, app, caller: Optional[Caller], msg: InIdentify) -> Result:
    roster: Roster = app.state.roster
    participant = roster.participant(msg.participant_id)
    if participant is None:
        return [OutError(code="UNKNOWN_PARTICIPANT", message=f"Unknown participant: {msg.participant_id}", kind="not_found")], []

    repo = app.state.repo
    ts = now_ts()
    state = await repo.get_state()
    touch_session(state, participant.id, ts)
    state = await repo.set_state(state)
    logger.info("Player identified: %s", participant.id)

    connected = OutPlayerConnected(
        participant_id=participant.id,
        display_name=participant.display_name,
        timestamp=ts,
        version=state.version,
    )
    me = OutIdentified(role="player", participant_id=participant.id, display_name=participant.display_name)
    return [me], [connected]


async def handle_admin_login(*, app, caller: Optional[Caller], msg: InAdminLogin) -> Result:
    expected = get_settings().ADMIN_SECRET_CODE
    if not expected or not hmac.compare_digest(msg.secret_code.encode(), expected.encode()):
        logger.warning("Rejected admin login attempt")
        return [OutError(code="INVALID_ADMIN_CODE", message="Invalid admin code", kind="authorization")], []

    repo = app.state.repo
    ts = now_ts()
    state = await repo.get_state()
    state.admin_id = f"admin-{ts}"
    state = await repo.set_state(state)
    logger.info("Admin identified: %s", state.admin_id)

    return (
        [OutIdentified(role="admin")],
        [OutAdminSet(admin_id=state.admin_id, timestamp=ts, version=state.version)],
    )


async def handle_logout(*, app, caller: Optional[Caller], msg: InLogout) -> Result:
    if not is_player(caller):
        return [OutLoggedOut()], []

    repo = app.state.repo
    state = await repo.peek_state()
    if state is None:
        return [OutLoggedOut()], []

    if caller.participant_id not in state.active_player_sessions:
        return [OutLoggedOut()], []

    ts = now_ts()
    was_online = mark_offline(state, caller.participant_id, ts)
    state = await repo.set_state(state)
    logger.info("Player logged out: %s", caller.participant_id)

    to_room: List[OutgoingEvent] = []
    if was_online:
        to_room.append(OutPlayerDisconnected(participant_id=caller.participant_id, timestamp=ts, version=state.version))
    return [OutLoggedOut()], to_room


async def handle_heartbeat(*, app, caller: Optional[Caller], msg: InHeartbeat) -> Result:
    """Liveness signal. Room hears about it only when the player comes back online."""
    if caller is None:
        return [no_session_error()], []
    if not is_player(caller):
        return [OutError(code="NOT_PLAYER", message="Heartbeats are for identified players", kind="authorization")], []

    roster: Roster = app.state.roster
    if roster.participant(caller.participant_id) is None:
        return [OutError(code="UNKNOWN_PARTICIPANT", message=f"Unknown participant: {caller.participant_id}", kind="not_found")], []

    repo = app.state.repo
    ts = now_ts()
    state = await repo.get_state()
    came_online = touch_session(state, caller.participant_id, ts)
    state = await repo.set_state(state)

    to_room: List[OutgoingEvent] = []
    if came_online:
        to_room.append(OutPlayerConnected(
            participant_id=caller.participant_id,
            display_name=roster.display_name(caller.participant_id),
            timestamp=ts,
            version=state.version,
        ))
    return [OutHeartbeatAck(timestamp=ts, interval_sec=get_settings().HEARTBEAT_INTERVAL_SEC)], to_room


async def handle_session_status(*, app, caller: Optional[Caller], msg: InSessionStatus) -> Result:
    if caller is None:
        return [OutSessionStatus(authenticated=False)], []

    roster: Roster = app.state.roster
    display_name = roster.display_name(caller.participant_id) if caller.participant_id else None
    return [OutSessionStatus(
        authenticated=True,
        role=caller.role,
        participant_id=caller.participant_id,
        display_name=display_name,
    )], []
