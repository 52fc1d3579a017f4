# secret_santa/sync/cache.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from secret_santa.store.models import DrawOptions, DrawResult, GameState, PlayerSession

logger = logging.getLogger(__name__)

# Event types whose payload carries a full state
_STATE_EVENTS = {
    "state-snapshot",
    "options-prepared",
    "selection-revealing",
    "draw-executed",
    "game-state-update",
    "quick-draw-summary",
}


class ObserverCache:
    """
    Client-side copy of the authoritative state, kept current from snapshots and events.

    States are ordered by `version`; anything not newer than the cache is a duplicate
    or arrived late and is dropped. Presence recorded locally (this client's own
    heartbeats) wins over an incoming session whose last_seen is older.
    """

    def __init__(self) -> None:
        self.state: Optional[GameState] = None
        self.last_draw: Optional[DrawResult] = None
        self.last_options: Optional[DrawOptions] = None
        self._local_seen: Dict[str, int] = {}

    @property
    def version(self) -> int:
        return self.state.version if self.state else 0

    def note_local_heartbeat(self, participant_id: str, ts: int) -> None:
        self._local_seen[participant_id] = max(ts, self._local_seen.get(participant_id, 0))
        if self.state is None:
            return
        session = self.state.active_player_sessions.get(participant_id)
        if session is None:
            self.state.active_player_sessions[participant_id] = PlayerSession(
                participant_id=participant_id, connected_at=ts, last_seen=ts, is_online=True,
            )
        elif session.last_seen < ts:
            session.last_seen = ts
            session.is_online = True

    def apply_snapshot(self, snapshot: Dict[str, Any]) -> bool:
        """Apply a `state-snapshot` payload. Returns True if the cache changed."""
        if not snapshot.get("exists") or snapshot.get("state") is None:
            return False
        return self._accept(GameState.model_validate(snapshot["state"]))

    def apply_event(self, event: Dict[str, Any]) -> bool:
        """Apply one broadcast event. Returns True if the cache changed."""
        t = event.get("type")

        if t == "game-reset":
            self.state = self._merge_local(GameState.model_validate(event["state"]))
            self.last_draw = None
            self.last_options = None
            return True

        if t == "state-snapshot":
            return self.apply_snapshot(event)

        if t in _STATE_EVENTS:
            if not self._accept(GameState.model_validate(event["state"])):
                return False
            if t == "draw-executed":
                self.last_draw = DrawResult.model_validate(event["draw_result"])
                self.last_options = None
            elif t == "options-prepared":
                self.last_options = DrawOptions.model_validate(event["draw_options"])
            return True

        if t in ("player-connected", "player-disconnected"):
            return self._apply_presence(event, online=(t == "player-connected"))

        if t == "admin-set":
            if self.state is None or event.get("version", 0) <= self.state.version:
                return False
            self.state.admin_id = event.get("admin_id")
            return True

        # turn-locked / turn-unlocked carry no state; the state events around them do
        return False

    def _apply_presence(self, event: Dict[str, Any], *, online: bool) -> bool:
        if self.state is None or event.get("version", 0) <= self.state.version:
            return False
        pid = event["participant_id"]
        ts = int(event.get("timestamp", 0))
        session = self.state.active_player_sessions.get(pid)
        if session is None:
            if not online:
                return False
            self.state.active_player_sessions[pid] = PlayerSession(
                participant_id=pid, connected_at=ts, last_seen=ts, is_online=True,
            )
            return True
        if not online and self._local_seen.get(pid, 0) > ts:
            return False
        session.is_online = online
        session.last_seen = max(session.last_seen, ts)
        return True

    def _accept(self, incoming: GameState) -> bool:
        if self.state is not None and incoming.version <= self.state.version:
            logger.debug("Dropping state v%d (cached v%d)", incoming.version, self.state.version)
            return False
        self.state = self._merge_local(incoming)
        return True

    def _merge_local(self, incoming: GameState) -> GameState:
        for pid, seen in self._local_seen.items():
            session = incoming.active_player_sessions.get(pid)
            if session is not None and session.last_seen < seen:
                session.last_seen = seen
                session.is_online = True
        return incoming
