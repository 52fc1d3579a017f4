# secret_santa/domain/turn/handlers.py
from __future__ import annotations

import logging
from typing import Optional

from secret_santa.domain.common.fsm import can_transition_phase
from secret_santa.domain.common.validation import can_drive_turn
from secret_santa.domain.draw.options import anonymize, prepare_options
from secret_santa.domain.turn.common import (
    Result,
    finalize_turn,
    no_session_error,
    not_your_turn_error,
    pick_safe_option,
    reveal_and_commit,
    turn_gate_error,
)
from secret_santa.domain.turn.lock import check_can_lock, lock_turn
from secret_santa.settings import get_settings
from secret_santa.store.models import Caller, DrawOptions, Roster
from secret_santa.transport.protocols import (
    InMakeSelection,
    InPrepareOptions,
    InRandomDraw,
    OutDrawExecuted,
    OutError,
    OutOptionsPrepared,
    OutTurnLocked,
)
from secret_santa.util.timeutil import now_ts

logger = logging.getLogger(__name__)


async def handle_prepare_options(*, app, caller: Optional[Caller], msg: InPrepareOptions) -> Result:
    """
    Lock the current turn and publish the anonymized options.
    Only one prepare per turn can win; the rest see TURN_IN_PROGRESS.
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

    ok, err_code, err_msg = check_can_lock(state)
    if not ok:
        return [OutError(code=err_code, message=err_msg, kind="concurrency")], []

    if not can_transition_phase(state.selection_phase, "selecting"):
        return [OutError(code="BAD_PHASE", message=f"Cannot prepare options in phase {state.selection_phase}", kind="phase")], []

    options = prepare_options(roster, state)
    if options is None:
        return [OutError(code="NO_VALID_OPTIONS", message="No valid options available", kind="feasibility")], []
    if not options.safe and not get_settings().ALLOW_UNSAFE_OPTIONS:
        return [OutError(
            code="ROSTER_UNSOLVABLE",
            message="No option keeps the draw solvable; an admin reset is required",
            kind="feasibility",
        )], []

    shuffled = anonymize(options.viable_ids)
    state = await repo.set_state(lock_turn(state, shuffled))
    logger.info("Turn locked for %s with %d options (safe=%s)", options.drawer_id, len(shuffled), options.safe)

    prepared = OutOptionsPrepared(
        draw_options=DrawOptions(drawer_id=options.drawer_id, viable_ids=shuffled, safe=options.safe),
        state=state,
    )
    locked = OutTurnLocked(drawer_id=options.drawer_id, timestamp=now_ts(), version=state.version)
    return [prepared], [locked, prepared]


async def handle_make_selection(*, app, caller: Optional[Caller], msg: InMakeSelection) -> Result:
    return await finalize_turn(app=app, caller=caller, choice_index=msg.choice_index, admin_override=False)


async def handle_random_draw(*, app, caller: Optional[Caller], msg: InRandomDraw) -> Result:
    """Single-step draw: pick one safe option at random and commit it."""
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

    ok, err_code, err_msg = check_can_lock(state)
    if not ok:
        return [OutError(code=err_code, message=err_msg, kind="concurrency")], []

    result, err = pick_safe_option(roster, state)
    if err:
        return [err], []

    _, events = await reveal_and_commit(repo=repo, roster=roster, state=state, result=result, selected_index=None)
    executed = [e for e in events if isinstance(e, OutDrawExecuted)]
    return executed, events
