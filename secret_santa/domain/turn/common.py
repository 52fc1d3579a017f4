# secret_santa/domain/turn/common.py
from __future__ import annotations

import logging
import random
from typing import List, Optional, Tuple

from secret_santa.domain.common.validation import can_drive_turn
from secret_santa.domain.draw.options import prepare_options
from secret_santa.domain.draw.selection import commit, finalize
from secret_santa.domain.turn.lock import check_locked
from secret_santa.settings import get_settings
from secret_santa.store.models import Caller, DrawResult, GameState, Roster
from secret_santa.transport.protocols import (
    OutDrawExecuted,
    OutError,
    OutGameStateUpdate,
    OutgoingEvent,
    OutSelectionRevealing,
    OutTurnUnlocked,
)
from secret_santa.util.timeutil import now_ts

logger = logging.getLogger(__name__)

Result = Tuple[List[OutgoingEvent], List[OutgoingEvent]]


def no_session_error() -> OutError:
    return OutError(code="NO_SESSION", message="Identify yourself first", kind="authorization")


def not_your_turn_error() -> OutError:
    return OutError(code="NOT_YOUR_TURN", message="Only the admin or the current drawer can do this", kind="authorization")


def turn_gate_error(state: GameState) -> Optional[OutError]:
    """Turns only happen while the game is in progress."""
    if state.game_lifecycle == "not_started":
        return OutError(code="GAME_NOT_STARTED", message="The game has not been started yet", kind="phase")
    if state.game_lifecycle == "completed" or state.is_complete:
        return OutError(code="GAME_COMPLETE", message="Game is already complete", kind="phase")
    return None


async def reveal_and_commit(
    *,
    repo,
    roster: Roster,
    state: GameState,
    result: DrawResult,
    selected_index: Optional[int],
    admin_override: bool = False,
) -> Tuple[GameState, List[OutgoingEvent]]:
    """
    Write the revealing state, then the committed next-turn state.
    Returns the committed state and the events describing both writes, in order.
    """
    ts = now_ts()

    revealing = state.model_copy(deep=True)
    revealing.selection_phase = "revealing"
    revealing.selected_index = selected_index
    revealing.turn_locked = True
    revealing = await repo.set_state(revealing)

    final = await repo.set_state(commit(roster, revealing, result))
    logger.info(
        "Draw committed: %s -> %s (turn %d/%d, override=%s)",
        result.drawer_id, result.giftee_id, final.current_drawer_index, len(roster.draw_order), admin_override,
    )

    events: List[OutgoingEvent] = [
        OutSelectionRevealing(selected_index=selected_index, state=revealing, admin_override=admin_override),
        OutTurnUnlocked(drawer_id=result.drawer_id, timestamp=ts, version=final.version, admin_override=admin_override),
        OutDrawExecuted(draw_result=result, state=final, admin_override=admin_override),
    ]
    if final.game_lifecycle == "completed":
        logger.info("Draw complete: %d assignments", len(final.assignments))
        events.append(OutGameStateUpdate(state=final))
    return final, events


async def finalize_turn(*, app, caller: Optional[Caller], choice_index: int, admin_override: bool) -> Result:
    """Shared path for a drawer's pick and an admin picking on their behalf."""
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

    ok, err_code, err_msg = check_locked(state)
    if not ok:
        return [OutError(code=err_code, message=err_msg, kind="concurrency")], []

    if state.selection_phase != "selecting":
        return [OutError(code="BAD_PHASE", message=f"Not in selection phase ({state.selection_phase})", kind="phase")], []

    result = finalize(roster, state, choice_index)
    if result is None:
        return [OutError(code="INVALID_CHOICE", message=f"Invalid choice index: {choice_index}", kind="validation")], []

    _, events = await reveal_and_commit(
        repo=repo,
        roster=roster,
        state=state,
        result=result,
        selected_index=choice_index,
        admin_override=admin_override,
    )
    executed = [e for e in events if isinstance(e, OutDrawExecuted)]
    return executed, events


def pick_safe_option(roster: Roster, state: GameState, rng: Optional[random.Random] = None) -> Tuple[Optional[DrawResult], Optional[OutError]]:
    """
    Choose one option for the current drawer without the anonymous selection step.
    Returns (result, error); exactly one is None.
    """
    options = prepare_options(roster, state)
    if options is None:
        return None, OutError(code="NO_VALID_OPTIONS", message="No valid options available", kind="feasibility")
    if not options.safe and not get_settings().ALLOW_UNSAFE_OPTIONS:
        return None, OutError(
            code="ROSTER_UNSOLVABLE",
            message="No option keeps the draw solvable; an admin reset is required",
            kind="feasibility",
        )

    giftee_id = (rng or random).choice(options.viable_ids)
    return DrawResult(drawer_id=options.drawer_id, giftee_id=giftee_id, giftee_name=roster.display_name(giftee_id)), None
