from secret_santa.domain.common.state import check_state_invariants, new_game_state
from secret_santa.domain.draw.selection import commit, finalize, resolve_override
from secret_santa.store.models import DrawResult


def _selecting(roster, options):
    state = new_game_state(roster)
    state.game_lifecycle = "in_progress"
    state.selection_phase = "selecting"
    state.turn_locked = True
    state.current_options = list(options)
    return state


def test_finalize_maps_index_to_option(four_roster):
    state = _selecting(four_roster, ["D", "C"])
    result = finalize(four_roster, state, 1)
    assert result == DrawResult(drawer_id="A", giftee_id="C", giftee_name="C")


def test_finalize_rejects_out_of_range_and_non_int(four_roster):
    state = _selecting(four_roster, ["D", "C"])
    assert finalize(four_roster, state, -1) is None
    assert finalize(four_roster, state, 2) is None
    assert finalize(four_roster, state, True) is None
    assert finalize(four_roster, _selecting(four_roster, []), 0) is None


def test_commit_moves_to_next_drawer(four_roster):
    state = _selecting(four_roster, ["D", "C"])
    state.selection_phase = "revealing"
    new = commit(four_roster, state, DrawResult(drawer_id="A", giftee_id="C", giftee_name="C"))

    assert new.assignments == {"A": "C"}
    assert "C" not in new.available_giftees
    assert new.current_drawer_index == 1
    assert new.selection_phase == "waiting"
    assert new.turn_locked is False
    assert new.current_options == []
    assert new.selected_index is None
    assert not new.is_complete
    assert check_state_invariants(four_roster, new) == []
    # input untouched
    assert state.assignments == {}


def test_last_commit_completes_the_game(four_roster):
    state = new_game_state(four_roster)
    state.game_lifecycle = "in_progress"
    state.assignments = {"A": "C", "B": "D", "C": "A"}
    state.available_giftees = ["B"]
    state.current_drawer_index = 3

    new = commit(four_roster, state, DrawResult(drawer_id="D", giftee_id="B", giftee_name="B"))
    assert new.is_complete
    assert new.game_lifecycle == "completed"
    assert new.selection_phase == "complete"
    assert new.available_giftees == []
    assert check_state_invariants(four_roster, new) == []


def test_override_validation(four_roster):
    state = new_game_state(four_roster)
    state.game_lifecycle = "in_progress"

    result, code, _ = resolve_override(four_roster, state, "C")
    assert result.giftee_id == "C" and code == ""

    assert resolve_override(four_roster, state, "Z")[1] == "UNKNOWN_PARTICIPANT"
    assert resolve_override(four_roster, state, "A")[1] == "INVALID_PAIR"

    state.available_giftees = ["A", "B", "D"]
    assert resolve_override(four_roster, state, "C")[1] == "ALREADY_DRAWN"

    state.current_drawer_index = 4
    assert resolve_override(four_roster, state, "C")[1] == "NO_CURRENT_DRAWER"
