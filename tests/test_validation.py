from secret_santa.domain.common.fsm import can_transition_lifecycle, can_transition_phase
from secret_santa.domain.common.state import check_state_invariants, new_game_state
from secret_santa.domain.common.validation import can_drive_turn, is_admin, is_current_drawer, is_player
from secret_santa.domain.turn.lock import check_can_lock, check_locked, lock_turn, unlock_turn
from secret_santa.store.models import Caller

from tests.conftest import ADMIN, player


def test_roles():
    assert is_admin(ADMIN)
    assert not is_admin(player("A"))
    assert not is_admin(None)
    assert is_player(player("A"))
    assert not is_player(Caller(role="player"))
    assert not is_player(Caller(role="spectator", participant_id="A"))


def test_only_current_drawer_or_admin_drives(four_roster):
    state = new_game_state(four_roster)
    assert is_current_drawer(player("A"), four_roster, state)
    assert not is_current_drawer(player("B"), four_roster, state)
    assert can_drive_turn(ADMIN, four_roster, state)
    assert not can_drive_turn(player("B"), four_roster, state)

    state.current_drawer_index = 4
    assert not is_current_drawer(player("D"), four_roster, state)


def test_transition_tables():
    assert can_transition_phase("waiting", "selecting")
    assert can_transition_phase("waiting", "revealing")
    assert not can_transition_phase("selecting", "selecting")
    assert not can_transition_phase("complete", "waiting")
    assert can_transition_lifecycle("not_started", "in_progress")
    assert not can_transition_lifecycle("completed", "in_progress")
    assert not can_transition_lifecycle("not_started", "completed")


def test_lock_and_unlock(four_roster):
    state = new_game_state(four_roster)
    assert check_can_lock(state) == (True, "", "")
    assert check_locked(state)[1] == "TURN_NOT_LOCKED"

    lock_turn(state, ["C", "D"])
    assert state.selection_phase == "selecting"
    assert check_can_lock(state)[1] == "TURN_IN_PROGRESS"
    assert check_locked(state)[0]
    assert check_state_invariants(four_roster, state) == []

    unlock_turn(state)
    assert state.selection_phase == "waiting"
    assert state.current_options == []
    assert check_state_invariants(four_roster, state) == []


def test_invariant_violations_are_reported(four_roster):
    state = new_game_state(four_roster)
    state.turn_locked = True
    state.assignments = {"A": "C", "B": "C"}
    problems = check_state_invariants(four_roster, state)
    assert "a giftee is assigned more than once" in problems
    assert "turn_locked disagrees with selection_phase" in problems
    assert "available_giftees does not match unassigned participants" in problems
