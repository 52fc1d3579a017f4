from pathlib import Path
from typing import Dict, List

import pytest

from secret_santa.store.models import Caller, Group, Participant, Roster
from secret_santa.store.roster import load_roster
from secret_santa.store.state_repo import StateRepo

SAMPLE_ROSTER = Path(__file__).resolve().parent.parent / "secret_santa" / "data" / "roster.json"


def make_roster(groups: Dict[str, List[str]], order: List[str]) -> Roster:
    return Roster(
        groups=[Group(id=gid, name=gid, member_ids=members) for gid, members in groups.items()],
        participants=[
            Participant(id=pid, display_name=pid.upper(), group_id=gid)
            for gid, members in groups.items()
            for pid in members
        ],
        draw_order=order,
    )


class RecordingBus:
    """Stands in for EventBus: keeps what would have been broadcast."""

    def __init__(self):
        self.events = []

    def publish_nowait(self, events):
        self.events.extend(events)

    def types(self):
        return [e["type"] for e in self.events]


class FakeApp:
    def __init__(self, roster: Roster):
        repo = StateRepo(roster)
        self.state = type("State", (), {"repo": repo, "roster": roster, "bus": RecordingBus()})()


ADMIN = Caller(role="admin")


def player(pid: str) -> Caller:
    return Caller(role="player", participant_id=pid)


@pytest.fixture
def four_roster() -> Roster:
    # A and B stand alone, C and D share a household
    return make_roster({"a": ["A"], "b": ["B"], "cd": ["C", "D"]}, ["A", "B", "C", "D"])


@pytest.fixture
def family_roster() -> Roster:
    return load_roster(SAMPLE_ROSTER)


@pytest.fixture
def app(four_roster) -> FakeApp:
    return FakeApp(four_roster)


@pytest.fixture
def family_app(family_roster) -> FakeApp:
    return FakeApp(family_roster)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("ALLOW_UNSAFE_OPTIONS", "ADMIN_SECRET_CODE", "PRESENCE_STALE_SEC", "BROADCAST_BACKEND"):
        monkeypatch.delenv(key, raising=False)
