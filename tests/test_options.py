import random

from secret_santa.domain.common.state import new_game_state
from secret_santa.domain.draw.options import anonymize, prepare_options


def _started(roster):
    state = new_game_state(roster)
    state.game_lifecycle = "in_progress"
    return state


def test_options_exclude_picks_that_deadlock_the_rest(four_roster):
    opts = prepare_options(four_roster, _started(four_roster))
    assert opts.drawer_id == "A"
    assert opts.safe is True
    assert set(opts.viable_ids) == {"C", "D"}


def test_forced_choice_after_first_pick(four_roster):
    state = _started(four_roster)
    state.assignments = {"A": "C"}
    state.available_giftees = ["A", "B", "D"]
    state.current_drawer_index = 1

    opts = prepare_options(four_roster, state)
    assert opts.drawer_id == "B"
    assert opts.viable_ids == ["D"]


def test_prepare_does_not_touch_state(four_roster):
    state = _started(four_roster)
    before = state.model_dump()
    prepare_options(four_roster, state)
    assert state.model_dump() == before


def test_unsolvable_position_falls_back_to_legal_set(four_roster):
    state = _started(four_roster)
    state.assignments = {"A": "B"}
    state.available_giftees = ["A", "C", "D"]
    state.current_drawer_index = 1

    opts = prepare_options(four_roster, state)
    assert opts.safe is False
    assert opts.viable_ids == ["A", "C", "D"]


def test_no_drawer_left(four_roster):
    state = _started(four_roster)
    state.current_drawer_index = 4
    assert prepare_options(four_roster, state) is None


def test_every_offered_option_is_legal(family_roster):
    state = _started(family_roster)
    opts = prepare_options(family_roster, state)
    assert opts.drawer_id == "walter"
    assert "walter" not in opts.viable_ids
    assert "martha" not in opts.viable_ids
    assert len(opts.viable_ids) == 10


def test_anonymize_is_a_permutation():
    ids = ["a", "b", "c", "d", "e"]
    out = anonymize(ids, random.Random(7))
    assert sorted(out) == ids
    assert ids == ["a", "b", "c", "d", "e"]
