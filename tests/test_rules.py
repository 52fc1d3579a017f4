from secret_santa.domain.draw.rules import exclusion_map, is_valid_pair, legal_candidates


def test_nobody_draws_themselves(four_roster):
    for pid in four_roster.participant_ids():
        assert not is_valid_pair(four_roster, pid, pid)


def test_group_members_exclude_each_other(four_roster):
    assert not is_valid_pair(four_roster, "C", "D")
    assert not is_valid_pair(four_roster, "D", "C")
    assert is_valid_pair(four_roster, "A", "C")
    assert is_valid_pair(four_roster, "C", "A")


def test_legal_candidates_keeps_given_order(four_roster):
    assert legal_candidates(four_roster, "C", ["D", "B", "C", "A"]) == ["B", "A"]
    assert legal_candidates(four_roster, "A", []) == []


def test_exclusion_map_includes_self(family_roster):
    excluded = exclusion_map(family_roster)
    assert excluded["walter"] == {"walter", "martha"}
    assert excluded["nora"] == {"nora"}
    assert excluded["dan"] == {"dan", "lucy", "theo"}
