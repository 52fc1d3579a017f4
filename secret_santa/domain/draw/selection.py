# secret_santa/domain/draw/selection.py
from __future__ import annotations

from typing import Optional, Tuple

from secret_santa.domain.common.state import current_drawer_id
from secret_santa.domain.draw.rules import is_valid_pair
from secret_santa.store.models import DrawResult, GameState, Roster


def finalize(roster: Roster, state: GameState, choice_index: int) -> Optional[DrawResult]:
    """
    Resolve a choice index into the prepared options. None if out of bounds
    or if there is no current drawer.
    """
    if not isinstance(choice_index, int) or isinstance(choice_index, bool):
        return None
    if choice_index < 0 or choice_index >= len(state.current_options):
        return None

    drawer_id = current_drawer_id(roster, state)
    if drawer_id is None:
        return None

    giftee_id = state.current_options[choice_index]
    return DrawResult(drawer_id=drawer_id, giftee_id=giftee_id, giftee_name=roster.display_name(giftee_id))


def resolve_override(roster: Roster, state: GameState, giftee_id: str) -> Tuple[Optional[DrawResult], str, str]:
    """
    Validate an out-of-band drawer -> giftee pairing for the current turn.
    Returns (result, err_code, err_message); result is None on failure.
    Phase and lock checks are the caller's job.
    """
    drawer_id = current_drawer_id(roster, state)
    if drawer_id is None:
        return None, "NO_CURRENT_DRAWER", "No current drawer"

    if roster.participant(giftee_id) is None:
        return None, "UNKNOWN_PARTICIPANT", f"Unknown participant: {giftee_id}"

    if giftee_id not in state.available_giftees:
        return None, "ALREADY_DRAWN", "Selected person has already been drawn"

    if not is_valid_pair(roster, drawer_id, giftee_id):
        return None, "INVALID_PAIR", "Cannot draw yourself or someone in your own group"

    return DrawResult(drawer_id=drawer_id, giftee_id=giftee_id, giftee_name=roster.display_name(giftee_id)), "", ""


def commit(roster: Roster, state: GameState, result: DrawResult) -> GameState:
    """Apply a draw result and move to the next turn (or complete the game)."""
    new = state.model_copy(deep=True)
    new.assignments[result.drawer_id] = result.giftee_id
    new.available_giftees = [g for g in new.available_giftees if g != result.giftee_id]
    new.current_drawer_index = state.current_drawer_index + 1
    return advance(roster, new)


def advance(roster: Roster, state: GameState) -> GameState:
    """
    Settle turn bookkeeping for `state.current_drawer_index`: clear the in-flight
    selection, release the turn lock, and complete the game at the end of the order.
    Mutates and returns `state`.
    """
    state.current_options = []
    state.selected_index = None
    state.turn_locked = False
    if state.current_drawer_index >= len(roster.draw_order):
        state.is_complete = True
        state.game_lifecycle = "completed"
        state.selection_phase = "complete"
    else:
        state.is_complete = False
        state.selection_phase = "waiting"
    return state
