# secret_santa/domain/draw/solver.py
from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Mapping, Set, Tuple

from secret_santa.domain.draw.rules import exclusion_map
from secret_santa.store.models import Roster


def can_complete(
    roster: Roster,
    next_drawer_index: int,
    assignments: Mapping[str, str],
    available_giftees: Iterable[str],
) -> bool:
    """
    True if every drawer from `next_drawer_index` on (skipping anyone already in
    `assignments`) can still receive a distinct legal giftee from `available_giftees`.

    Depth-first search in draw order over the remaining assignment tree. Failed
    sub-problems are memoized on (depth, remaining pool): once the prefix is fixed,
    only the pool left over matters, so equal pools reached through different
    prefixes are searched once. Recursion depth is bounded by the roster size.
    """
    order = roster.draw_order
    if next_drawer_index >= len(order):
        return True

    drawers = [d for d in order[next_drawer_index:] if d not in assignments]
    pool: FrozenSet[str] = frozenset(available_giftees)
    if len(drawers) > len(pool):
        return False

    excluded = exclusion_map(roster)
    allowed: Dict[str, List[str]] = {
        d: [g for g in pool if g not in excluded.get(d, {d})] for d in drawers
    }
    if any(not allowed[d] for d in drawers):
        return False

    failed: Set[Tuple[int, FrozenSet[str]]] = set()

    def dfs(i: int, left: FrozenSet[str]) -> bool:
        if i == len(drawers):
            return True
        key = (i, left)
        if key in failed:
            return False
        for g in allowed[drawers[i]]:
            if g in left and dfs(i + 1, left - {g}):
                return True
        failed.add(key)
        return False

    return dfs(0, pool)
