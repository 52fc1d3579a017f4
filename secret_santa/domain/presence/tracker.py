# secret_santa/domain/presence/tracker.py
from __future__ import annotations

from typing import List

from secret_santa.store.models import GameState, PlayerSession


def touch_session(state: GameState, participant_id: str, ts: int) -> bool:
    """
    Create or refresh a session. connected_at is set once and kept.
    Returns True when the participant just came online (new or previously offline).
    """
    session = state.active_player_sessions.get(participant_id)
    if session is None:
        state.active_player_sessions[participant_id] = PlayerSession(
            participant_id=participant_id,
            connected_at=ts,
            last_seen=ts,
            is_online=True,
        )
        return True

    came_online = not session.is_online
    session.last_seen = max(session.last_seen, ts)
    session.is_online = True
    return came_online


def mark_offline(state: GameState, participant_id: str, ts: int) -> bool:
    """Logout. Returns True if the session was online."""
    session = state.active_player_sessions.get(participant_id)
    if session is None:
        return False
    was_online = session.is_online
    session.last_seen = max(session.last_seen, ts)
    session.is_online = False
    return was_online


def sweep_stale(state: GameState, ts: int, stale_after_sec: int) -> List[str]:
    """Flip sessions silent for longer than `stale_after_sec` to offline; returns their ids."""
    flipped: List[str] = []
    for pid, session in state.active_player_sessions.items():
        if session.is_online and ts - session.last_seen > stale_after_sec:
            session.is_online = False
            flipped.append(pid)
    return flipped
