import pytest

from secret_santa.domain.common.state import new_game_state
from secret_santa.domain.presence.tracker import mark_offline, sweep_stale, touch_session
from secret_santa.transport.dispatcher import dispatch_message

from tests.conftest import ADMIN, player


async def _send(app, caller, **raw):
    return await dispatch_message(app=app, caller=caller, raw=raw)


def test_touch_keeps_connected_at(four_roster):
    state = new_game_state(four_roster)
    assert touch_session(state, "A", 100) is True
    assert touch_session(state, "A", 130) is False

    s = state.active_player_sessions["A"]
    assert s.connected_at == 100
    assert s.last_seen == 130
    assert s.is_online


def test_stale_sessions_go_offline_but_stay(four_roster):
    state = new_game_state(four_roster)
    touch_session(state, "A", 100)
    touch_session(state, "B", 150)

    assert sweep_stale(state, 170, 60) == ["A"]
    a = state.active_player_sessions["A"]
    assert a.is_online is False
    assert a.connected_at == 100
    assert a.last_seen == 100
    assert state.active_player_sessions["B"].is_online

    # coming back flips it online again, connected_at untouched
    assert touch_session(state, "A", 200) is True
    assert state.active_player_sessions["A"].connected_at == 100


def test_logout_marks_offline(four_roster):
    state = new_game_state(four_roster)
    touch_session(state, "C", 10)
    assert mark_offline(state, "C", 20) is True
    assert mark_offline(state, "C", 30) is False
    assert mark_offline(state, "D", 30) is False
    assert state.active_player_sessions["C"].last_seen == 30
    assert "D" not in state.active_player_sessions


@pytest.mark.asyncio
async def test_identify_and_heartbeat(app):
    out = await _send(app, None, type="identify", participant_id="C")
    assert out[0] == {"type": "identified", "role": "player", "participant_id": "C", "display_name": "C"}
    assert app.state.bus.types() == ["player-connected"]

    app.state.bus.events.clear()
    out = await _send(app, player("C"), type="heartbeat")
    assert out[0]["type"] == "heartbeat-ack"
    assert out[0]["interval_sec"] == 30
    assert app.state.bus.events == []

    out = await _send(app, None, type="identify", participant_id="nobody")
    assert out[0]["code"] == "UNKNOWN_PARTICIPANT"


@pytest.mark.asyncio
async def test_heartbeat_requires_player(app):
    out = await _send(app, None, type="heartbeat")
    assert out[0]["code"] == "NO_SESSION"
    out = await _send(app, ADMIN, type="heartbeat")
    assert out[0]["code"] == "NOT_PLAYER"


@pytest.mark.asyncio
async def test_snapshot_sweeps_stale_sessions(app):
    out = await _send(app, None, type="snapshot")
    assert out[0] == {"type": "state-snapshot", "exists": False, "state": None}

    await _send(app, None, type="identify", participant_id="A")
    repo = app.state.repo
    state = await repo.get_state()
    state.active_player_sessions["A"].last_seen -= 3600
    connected_at = state.active_player_sessions["A"].connected_at
    await repo.set_state(state)
    app.state.bus.events.clear()

    out = await _send(app, None, type="snapshot")
    session = out[0]["state"]["active_player_sessions"]["A"]
    assert session["is_online"] is False
    assert session["connected_at"] == connected_at
    assert app.state.bus.types() == ["player-disconnected"]
    assert app.state.bus.events[0]["stale"] is True

    # heartbeat brings the player back and the room hears it
    app.state.bus.events.clear()
    await _send(app, player("A"), type="heartbeat")
    assert app.state.bus.types() == ["player-connected"]


@pytest.mark.asyncio
async def test_logout_and_admin_login(app, monkeypatch):
    monkeypatch.setenv("ADMIN_SECRET_CODE", "north-pole")

    out = await _send(app, None, type="admin_login", secret_code="south-pole")
    assert out[0]["code"] == "INVALID_ADMIN_CODE"

    out = await _send(app, None, type="admin_login", secret_code="north-pole")
    assert out[0] == {"type": "identified", "role": "admin", "participant_id": None, "display_name": None}
    state = await app.state.repo.get_state()
    assert state.admin_id.startswith("admin-")

    await _send(app, None, type="identify", participant_id="B")
    app.state.bus.events.clear()
    out = await _send(app, player("B"), type="logout")
    assert out[0]["type"] == "logged-out"
    assert app.state.bus.types() == ["player-disconnected"]
    state = await app.state.repo.get_state()
    assert state.active_player_sessions["B"].is_online is False


@pytest.mark.asyncio
async def test_admin_login_disabled_without_code(app):
    out = await _send(app, None, type="admin_login", secret_code="")
    assert out[0]["code"] == "INVALID_ADMIN_CODE"


@pytest.mark.asyncio
async def test_session_status(app):
    out = await _send(app, None, type="session_status")
    assert out[0]["authenticated"] is False
    out = await _send(app, player("D"), type="session_status")
    assert out[0]["role"] == "player"
    assert out[0]["display_name"] == "D"
