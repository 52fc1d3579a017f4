# secret_santa/domain/common/validation.py
from __future__ import annotations

from typing import Optional

from secret_santa.domain.common.state import current_drawer_id
from secret_santa.store.models import Caller, GameState, Roster


def is_admin(caller: Optional[Caller]) -> bool:
    return caller is not None and caller.role == "admin"


def is_player(caller: Optional[Caller]) -> bool:
    return caller is not None and caller.role == "player" and bool(caller.participant_id)


def is_current_drawer(caller: Optional[Caller], roster: Roster, state: GameState) -> bool:
    """Check if caller is the participant whose turn it is."""
    if not is_player(caller):
        return False
    drawer = current_drawer_id(roster, state)
    return drawer is not None and caller.participant_id == drawer


def can_drive_turn(caller: Optional[Caller], roster: Roster, state: GameState) -> bool:
    """Turn actions are open to the admin and to the active drawer only."""
    return is_admin(caller) or is_current_drawer(caller, roster, state)
