# secret_santa/domain/draw/options.py
from __future__ import annotations

import logging
import random
from typing import List, Optional

from secret_santa.domain.common.state import current_drawer_id
from secret_santa.domain.draw.rules import legal_candidates
from secret_santa.domain.draw.solver import can_complete
from secret_santa.store.models import DrawOptions, GameState, Roster

logger = logging.getLogger(__name__)


def prepare_options(roster: Roster, state: GameState) -> Optional[DrawOptions]:
    """
    Candidates for the current drawer that keep the rest of the draw solvable.

    Returns None when the draw order is exhausted or the drawer has no legal
    candidate at all. When legal candidates exist but none of them is safe, the
    raw legal set is returned with safe=False; callers decide whether to offer it.
    Read-only: `state` is not modified.
    """
    drawer_id = current_drawer_id(roster, state)
    if drawer_id is None:
        return None

    legal = legal_candidates(roster, drawer_id, state.available_giftees)
    if not legal:
        return None

    viable: List[str] = []
    for candidate in legal:
        after = dict(state.assignments)
        after[drawer_id] = candidate
        left = [g for g in state.available_giftees if g != candidate]
        if can_complete(roster, state.current_drawer_index + 1, after, left):
            viable.append(candidate)

    if viable:
        return DrawOptions(drawer_id=drawer_id, viable_ids=viable, safe=True)

    logger.error(
        "No candidate keeps the draw solvable for %s (index=%d, available=%s); roster exclusions cannot be completed",
        drawer_id, state.current_drawer_index, state.available_giftees,
    )
    return DrawOptions(drawer_id=drawer_id, viable_ids=legal, safe=False)


def anonymize(ids: List[str], rng: Optional[random.Random] = None) -> List[str]:
    """Shuffled copy, so a box's position says nothing about who is inside."""
    out = list(ids)
    (rng or random).shuffle(out)
    return out
