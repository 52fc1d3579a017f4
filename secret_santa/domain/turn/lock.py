# secret_santa/domain/turn/lock.py
from __future__ import annotations

from typing import List, Tuple

from secret_santa.store.models import GameState

Check = Tuple[bool, str, str]


def check_can_lock(state: GameState) -> Check:
    """Admission check for a new turn. Returns (ok, err_code, err_message)."""
    if state.turn_locked:
        return False, "TURN_IN_PROGRESS", "A draw is already in progress for this turn"
    return True, "", ""


def check_locked(state: GameState) -> Check:
    if not state.turn_locked:
        return False, "TURN_NOT_LOCKED", "No draw is in progress for this turn"
    return True, "", ""


def lock_turn(state: GameState, options: List[str]) -> GameState:
    """Enter selecting with `options` outstanding. Mutates and returns `state`."""
    state.selection_phase = "selecting"
    state.current_options = list(options)
    state.selected_index = None
    state.turn_locked = True
    return state


def unlock_turn(state: GameState) -> GameState:
    """Drop the in-flight selection without committing anything."""
    state.selection_phase = "complete" if state.is_complete else "waiting"
    state.current_options = []
    state.selected_index = None
    state.turn_locked = False
    return state
