# secret_santa/domain/draw/rules.py
from __future__ import annotations

from typing import Dict, Iterable, List, Set

from secret_santa.store.models import Roster


def is_valid_pair(roster: Roster, drawer_id: str, candidate_id: str) -> bool:
    """
    A drawer may gift anyone except themselves and members of their own group.
    """
    if drawer_id == candidate_id:
        return False
    if candidate_id in roster.group_members(drawer_id):
        return False
    return True


def legal_candidates(roster: Roster, drawer_id: str, available: Iterable[str]) -> List[str]:
    """Available giftees the drawer may legally receive, in the given order."""
    return [g for g in available if is_valid_pair(roster, drawer_id, g)]


def exclusion_map(roster: Roster) -> Dict[str, Set[str]]:
    """participant id -> ids they can never draw (self included)."""
    excluded: Dict[str, Set[str]] = {}
    for pid in roster.participant_ids():
        blocked = set(roster.group_members(pid))
        blocked.add(pid)
        excluded[pid] = blocked
    return excluded
