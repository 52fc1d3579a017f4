# secret_santa/store/state_repo.py
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from secret_santa.domain.common.state import new_game_state
from secret_santa.store.models import GameState, Roster

logger = logging.getLogger(__name__)


class StateRepo:
    """
    Owner of the single authoritative GameState (in memory, no durability).

    `lock` is the critical section for read-modify-write: the dispatcher holds it
    around a whole handler so check-and-set on `turn_locked` cannot interleave.
    Reads hand out deep copies; only set_state/reset_state change the record.
    """

    def __init__(self, roster: Roster):
        self.roster = roster
        self.lock = asyncio.Lock()
        self._state: Optional[GameState] = None
        self._version = 0

    # ----------------------------
    # Reads
    # ----------------------------
    async def peek_state(self) -> Optional[GameState]:
        """Current state without creating it."""
        if self._state is None:
            return None
        return self._state.model_copy(deep=True)

    async def get_state(self) -> GameState:
        """Current state, created lazily in not_started on first access."""
        if self._state is None:
            self._store(new_game_state(self.roster))
            logger.info("Game state created (version=%d)", self._version)
        return self._state.model_copy(deep=True)

    # ----------------------------
    # Writes
    # ----------------------------
    async def set_state(self, state: GameState) -> GameState:
        return self._store(state)

    async def reset_state(self, *, keep_presence: bool = True) -> GameState:
        """
        Replace the record with a fresh not_started game.
        Presence (sessions, admin id) is not part of the draw and survives unless asked.
        """
        fresh = new_game_state(self.roster)
        if keep_presence and self._state is not None:
            fresh.active_player_sessions = {
                k: v.model_copy() for k, v in self._state.active_player_sessions.items()
            }
            fresh.admin_id = self._state.admin_id
        stored = self._store(fresh)
        logger.info("Game state reset (version=%d)", self._version)
        return stored

    def _store(self, state: GameState) -> GameState:
        self._version += 1
        stored = state.model_copy(deep=True)
        stored.version = self._version
        self._state = stored
        return stored.model_copy(deep=True)
