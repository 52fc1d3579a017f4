import json

import pytest
from pydantic import ValidationError

from secret_santa.store.roster import load_roster


def _write(tmp_path, data):
    p = tmp_path / "roster.json"
    p.write_text(json.dumps(data), encoding="utf-8")
    return p


def _roster(**overrides):
    data = {
        "groups": [
            {"id": "g1", "member_ids": ["a", "b"]},
            {"id": "g2", "member_ids": ["c"]},
        ],
        "participants": [
            {"id": "a", "display_name": "Ann", "group_id": "g1"},
            {"id": "b", "display_name": "Ben", "group_id": "g1"},
            {"id": "c", "display_name": "Cy", "group_id": "g2"},
        ],
        "draw_order": ["c", "a", "b"],
    }
    data.update(overrides)
    return data


def test_load_sample_roster(family_roster):
    assert len(family_roster.participants) == 12
    assert family_roster.draw_order[0] == "walter"
    assert family_roster.display_name("walter") == "Grandpa Walter"


def test_load_valid_roster(tmp_path):
    roster = load_roster(_write(tmp_path, _roster()))
    assert roster.group_members("a") == ["a", "b"]
    assert roster.drawer_at(0) == "c"
    assert roster.drawer_at(3) is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"draw_order": ["a", "b"]},
        {"draw_order": ["a", "b", "b"]},
        {"groups": [{"id": "g1", "member_ids": ["a"]}, {"id": "g2", "member_ids": ["c"]}]},
        {"groups": [{"id": "g1", "member_ids": ["a", "b", "z"]}, {"id": "g2", "member_ids": ["c"]}]},
    ],
)
def test_inconsistent_rosters_fail_to_load(tmp_path, overrides):
    with pytest.raises(ValidationError):
        load_roster(_write(tmp_path, _roster(**overrides)))


def test_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_roster(tmp_path / "nope.json")
