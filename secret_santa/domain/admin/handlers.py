# secret_santa/domain/admin/handlers.py
from __future__ import annotations

import logging
from typing import List, Optional

from secret_santa.domain.common.fsm import can_transition_lifecycle
from secret_santa.domain.common.state import check_state_invariants, current_drawer_id
from secret_santa.domain.common.validation import can_drive_turn, is_admin
from secret_santa.domain.draw.selection import advance, commit, resolve_override
from secret_santa.domain.draw.solver import can_complete
from secret_santa.domain.turn.common import (
    Result,
    finalize_turn,
    no_session_error,
    not_your_turn_error,
    pick_safe_option,
    reveal_and_commit,
    turn_gate_error,
)
from secret_santa.domain.turn.lock import check_can_lock, check_locked, unlock_turn
from secret_santa.settings import get_settings
from secret_santa.store.models import Caller, DrawResult, Roster
from secret_santa.transport.protocols import (
    InDrawForPlayer,
    InQuickDrawAll,
    InReplaceState,
    InReset,
    InSetNextResult,
    InSkipTurn,
    InStartGame,
    InUnlockTurn,
    OutDrawExecuted,
    OutError,
    OutGameReset,
    OutGameStateUpdate,
    OutgoingEvent,
    OutQuickDrawSummary,
    OutTurnUnlocked,
)
from secret_santa.util.timeutil import now_ts

logger = logging.getLogger(__name__)

_OVERRIDE_CODES_NOT_FOUND = {"UNKNOWN_PARTICIPANT"}


def _require_admin(caller: Optional[Caller]) -> Optional[OutError]:
    if caller is None:
        return no_session_error()
    if not is_admin(caller):
        return OutError(code="NOT_ADMIN", message="Admin access required", kind="authorization")
    return None


# ----------------------------
# Lifecycle
# ----------------------------
async def handle_start_game(*, app, caller: Optional[Caller], msg: InStartGame) -> Result:
    err = _require_admin(caller)
    if err:
        return [err], []

    repo = app.state.repo
    roster: Roster = app.state.roster
    state = await repo.get_state()

    if not can_transition_lifecycle(state.game_lifecycle, "in_progress"):
        return [OutError(code="GAME_ALREADY_STARTED", message=f"Game is {state.game_lifecycle}", kind="phase")], []

    if not can_complete(roster, state.current_drawer_index, state.assignments, state.available_giftees):
        logger.error("Refusing to start: roster exclusions leave no complete assignment")
        return [OutError(
            code="ROSTER_UNSOLVABLE",
            message="The roster has no complete assignment under its exclusions",
            kind="feasibility",
        )], []

    state.game_lifecycle = "in_progress"
    state = await repo.set_state(state)
    logger.info("Game started (version=%d, drawer=%s)", state.version, current_drawer_id(roster, state))

    ev = OutGameStateUpdate(state=state)
    return [ev], [ev]


async def handle_reset(*, app, caller: Optional[Caller], msg: InReset) -> Result:
    """Back to a fresh not_started game. Safe to repeat."""
    err = _require_admin(caller)
    if err:
        return [err], []

    state = await app.state.repo.reset_state(keep_presence=True)
    logger.info("Game reset by admin (version=%d)", state.version)

    ev = OutGameReset(state=state)
    return [ev], [ev]


async def handle_replace_state(*, app, caller: Optional[Caller], msg: InReplaceState) -> Result:
    err = _require_admin(caller)
    if err:
        return [err], []

    roster: Roster = app.state.roster
    problems = check_state_invariants(roster, msg.state)
    if problems:
        return [OutError(code="INVALID_STATE", message="; ".join(problems), kind="validation")], []

    state = await app.state.repo.set_state(msg.state)
    logger.warning("Game state replaced wholesale by admin (version=%d)", state.version)

    ev = OutGameStateUpdate(state=state)
    return [ev], [ev]


# ----------------------------
# Turn control
# ----------------------------
async def handle_skip_turn(*, app, caller: Optional[Caller], msg: InSkipTurn) -> Result:
    """
    Move past the current drawer without an assignment.
    The skipped drawer keeps no giftee; an in-flight selection is dropped.
    """
    if caller is None:
        return [no_session_error()], []

    repo = app.state.repo
    roster: Roster = app.state.roster
    state = await repo.get_state()

    if not can_drive_turn(caller, roster, state):
        return [not_your_turn_error()], []

    gate = turn_gate_error(state)
    if gate:
        return [gate], []

    drawer_id = current_drawer_id(roster, state)
    was_locked = state.turn_locked

    state.current_drawer_index += 1
    state = await repo.set_state(advance(roster, state))
    logger.info("Turn skipped for %s (was_locked=%s, version=%d)", drawer_id, was_locked, state.version)

    update = OutGameStateUpdate(state=state)
    to_room: List[OutgoingEvent] = [update]
    if was_locked:
        to_room.append(OutTurnUnlocked(
            drawer_id=drawer_id,
            timestamp=now_ts(),
            version=state.version,
            admin_override=is_admin(caller),
            skipped=True,
        ))
    return [update], to_room


async def handle_unlock_turn(*, app, caller: Optional[Caller], msg: InUnlockTurn) -> Result:
    """Force-release a stuck turn; the same drawer starts over from waiting."""
    err = _require_admin(caller)
    if err:
        return [err], []

    repo = app.state.repo
    roster: Roster = app.state.roster
    state = await repo.get_state()

    ok, err_code, err_msg = check_locked(state)
    if not ok:
        return [OutError(code=err_code, message=err_msg, kind="concurrency")], []

    drawer_id = current_drawer_id(roster, state)
    state = await repo.set_state(unlock_turn(state))
    logger.warning("Turn force-unlocked for %s (version=%d)", drawer_id, state.version)

    update = OutGameStateUpdate(state=state)
    unlocked = OutTurnUnlocked(drawer_id=drawer_id, timestamp=now_ts(), version=state.version, admin_override=True)
    return [update], [unlocked, update]


async def handle_set_next_result(*, app, caller: Optional[Caller], msg: InSetNextResult) -> Result:
    """Commit a chosen pairing for the current drawer, bypassing the anonymous options."""
    if caller is None:
        return [no_session_error()], []

    repo = app.state.repo
    roster: Roster = app.state.roster
    state = await repo.get_state()

    if not can_drive_turn(caller, roster, state):
        return [not_your_turn_error()], []

    gate = turn_gate_error(state)
    if gate:
        return [gate], []

    if state.selection_phase != "waiting":
        return [OutError(
            code="BAD_PHASE",
            message=f"Override is only allowed before options are offered (phase {state.selection_phase})",
            kind="phase",
        )], []

    ok, err_code, err_msg = check_can_lock(state)
    if not ok:
        return [OutError(code=err_code, message=err_msg, kind="concurrency")], []

    result, err_code, err_msg = resolve_override(roster, state, msg.giftee_id)
    if result is None:
        kind = "not_found" if err_code in _OVERRIDE_CODES_NOT_FOUND else "validation"
        return [OutError(code=err_code, message=err_msg, kind=kind)], []

    after = dict(state.assignments)
    after[result.drawer_id] = result.giftee_id
    left = [g for g in state.available_giftees if g != result.giftee_id]
    if not can_complete(roster, state.current_drawer_index + 1, after, left):
        if not get_settings().ALLOW_UNSAFE_OPTIONS:
            return [OutError(
                code="ROSTER_UNSOLVABLE",
                message="This pairing leaves the rest of the draw unsolvable",
                kind="feasibility",
            )], []
        logger.warning("Override %s -> %s leaves the rest of the draw unsolvable", result.drawer_id, result.giftee_id)

    _, events = await reveal_and_commit(
        repo=repo,
        roster=roster,
        state=state,
        result=result,
        selected_index=None,
        admin_override=True,
    )
    executed = [e for e in events if isinstance(e, OutDrawExecuted)]
    return executed, events


async def handle_draw_for_player(*, app, caller: Optional[Caller], msg: InDrawForPlayer) -> Result:
    err = _require_admin(caller)
    if err:
        return [err], []
    return await finalize_turn(app=app, caller=caller, choice_index=msg.choice_index, admin_override=True)


async def handle_quick_draw_all(*, app, caller: Optional[Caller], msg: InQuickDrawAll) -> Result:
    """
    Finish the whole draw at random, one safe pick per remaining turn.
    Draws committed before a failure stay committed and are still published.
    """
    err = _require_admin(caller)
    if err:
        return [err], []

    repo = app.state.repo
    roster: Roster = app.state.roster
    state = await repo.get_state()

    gate = turn_gate_error(state)
    if gate:
        return [gate], []

    ok, err_code, err_msg = check_can_lock(state)
    if not ok:
        return [OutError(code=err_code, message=err_msg, kind="concurrency")], []

    draws: List[DrawResult] = []
    to_room: List[OutgoingEvent] = []
    while state.game_lifecycle == "in_progress":
        result, pick_err = pick_safe_option(roster, state)
        if pick_err:
            logger.error("Quick draw stopped after %d draws: %s", len(draws), pick_err.code)
            return [pick_err], to_room

        state = await repo.set_state(commit(roster, state, result))
        draws.append(result)
        to_room.append(OutDrawExecuted(draw_result=result, state=state, admin_override=True))

    logger.info("Quick draw committed %d draws (version=%d)", len(draws), state.version)
    to_room.append(OutGameStateUpdate(state=state))
    return [OutQuickDrawSummary(draws=draws, state=state)], to_room
