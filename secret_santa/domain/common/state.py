# secret_santa/domain/common/state.py
from __future__ import annotations

from typing import List, Optional

from secret_santa.domain.draw.rules import is_valid_pair
from secret_santa.store.models import GameState, Roster


def new_game_state(roster: Roster) -> GameState:
    """Fresh not_started game: nobody assigned, everybody available."""
    return GameState(
        current_drawer_index=0,
        assignments={},
        available_giftees=roster.participant_ids(),
        selection_phase="waiting",
        game_lifecycle="not_started",
        current_options=[],
        selected_index=None,
        turn_locked=False,
        active_player_sessions={},
        admin_id=None,
        is_complete=False,
    )


def current_drawer_id(roster: Roster, state: GameState) -> Optional[str]:
    return roster.drawer_at(state.current_drawer_index)


def check_state_invariants(roster: Roster, state: GameState) -> List[str]:
    """
    Problems that make `state` unacceptable as the authoritative record.
    Used to vet wholesale replacements; an empty list means consistent.
    """
    problems: List[str] = []
    everyone = set(roster.participant_ids())
    total = len(roster.draw_order)

    if state.current_drawer_index < 0 or state.current_drawer_index > total:
        problems.append("current_drawer_index out of range")

    # skipped drawers leave gaps, so keys are a subset of the drawers already passed
    passed = set(roster.draw_order[:max(state.current_drawer_index, 0)])
    for drawer, giftee in state.assignments.items():
        if drawer not in everyone or giftee not in everyone:
            problems.append(f"assignment {drawer}->{giftee} references unknown participant")
            continue
        if drawer not in passed:
            problems.append(f"assignment for {drawer} who has not drawn yet")
        if not is_valid_pair(roster, drawer, giftee):
            problems.append(f"assignment {drawer}->{giftee} breaks the pairing rules")
    if len(set(state.assignments.values())) != len(state.assignments):
        problems.append("a giftee is assigned more than once")

    expected_available = everyone - set(state.assignments.values())
    if set(state.available_giftees) != expected_available or len(state.available_giftees) != len(expected_available):
        problems.append("available_giftees does not match unassigned participants")

    reached_end = state.current_drawer_index >= total
    if state.is_complete != reached_end:
        problems.append("is_complete disagrees with current_drawer_index")
    if state.is_complete != (state.game_lifecycle == "completed"):
        problems.append("is_complete disagrees with game_lifecycle")

    if state.turn_locked != (state.selection_phase in ("selecting", "revealing")):
        problems.append("turn_locked disagrees with selection_phase")
    if state.selection_phase not in ("selecting", "revealing") and state.current_options:
        problems.append("current_options set outside an active selection")
    if not set(state.current_options) <= set(state.available_giftees):
        problems.append("current_options include a participant already drawn")
    return problems
