# secret_santa/domain/common/fsm.py
from __future__ import annotations

from secret_santa.domain.common.types import GameLifecycle, SelectionPhase


def can_transition_phase(current: SelectionPhase, target: SelectionPhase) -> bool:
    """
    Per-turn phase transitions.
    waiting -> revealing is the administrative override (no options offered).
    selecting -> waiting is a force unlock.
    """
    transitions: dict[SelectionPhase, list[SelectionPhase]] = {
        "waiting": ["selecting", "revealing", "waiting", "complete"],
        "selecting": ["revealing", "waiting"],
        "revealing": ["waiting", "complete"],
        "complete": [],
    }
    return target in transitions.get(current, [])


def can_transition_lifecycle(current: GameLifecycle, target: GameLifecycle) -> bool:
    """Lifecycle only moves forward; going back is a reset, not a transition."""
    transitions: dict[GameLifecycle, list[GameLifecycle]] = {
        "not_started": ["in_progress"],
        "in_progress": ["completed"],
        "completed": [],
    }
    return target in transitions.get(current, [])
