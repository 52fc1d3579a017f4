# secret_santa/store/models.py
from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

SelectionPhase = Literal["waiting", "selecting", "revealing", "complete"]
GameLifecycle = Literal["not_started", "in_progress", "completed"]
Role = Literal["admin", "player", "spectator"]


# ----------------------------
# Roster (static, immutable at runtime)
# ----------------------------
class Participant(BaseModel):
    id: str = Field(min_length=1)
    display_name: str
    group_id: str


class Group(BaseModel):
    """Exclusion unit ("clic"): members never draw each other."""
    id: str = Field(min_length=1)
    name: str = ""
    member_ids: List[str] = Field(default_factory=list)


class Roster(BaseModel):
    groups: List[Group]
    participants: List[Participant]
    draw_order: List[str]

    @model_validator(mode="after")
    def _check_consistency(self) -> "Roster":
        ids = [p.id for p in self.participants]
        if len(ids) != len(set(ids)):
            raise ValueError("participant ids must be unique")

        group_ids = [g.id for g in self.groups]
        if len(group_ids) != len(set(group_ids)):
            raise ValueError("group ids must be unique")

        groups = {g.id: g for g in self.groups}
        for p in self.participants:
            g = groups.get(p.group_id)
            if g is None:
                raise ValueError(f"participant {p.id} references unknown group {p.group_id}")
            if p.id not in g.member_ids:
                raise ValueError(f"group {g.id} does not list its member {p.id}")

        known = set(ids)
        for g in self.groups:
            for mid in g.member_ids:
                if mid not in known:
                    raise ValueError(f"group {g.id} lists unknown participant {mid}")

        if sorted(self.draw_order) != sorted(ids):
            raise ValueError("draw_order must list every participant exactly once")
        return self

    def participant_ids(self) -> List[str]:
        return [p.id for p in self.participants]

    def participant(self, pid: str) -> Optional[Participant]:
        for p in self.participants:
            if p.id == pid:
                return p
        return None

    def display_name(self, pid: str) -> str:
        p = self.participant(pid)
        return p.display_name if p else pid

    def group_members(self, pid: str) -> List[str]:
        """Members of pid's group (pid included); empty for unknown ids."""
        p = self.participant(pid)
        if p is None:
            return []
        for g in self.groups:
            if g.id == p.group_id:
                return list(g.member_ids)
        return []

    def drawer_at(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.draw_order):
            return self.draw_order[index]
        return None


# ----------------------------
# Live state
# ----------------------------
class PlayerSession(BaseModel):
    participant_id: str
    connected_at: int
    last_seen: int
    is_online: bool = True


class GameState(BaseModel):
    current_drawer_index: int = 0
    assignments: Dict[str, str] = Field(default_factory=dict)   # drawer -> giftee
    available_giftees: List[str] = Field(default_factory=list)
    selection_phase: SelectionPhase = "waiting"
    game_lifecycle: GameLifecycle = "not_started"
    current_options: List[str] = Field(default_factory=list)
    selected_index: Optional[int] = None
    turn_locked: bool = False
    active_player_sessions: Dict[str, PlayerSession] = Field(default_factory=dict)
    admin_id: Optional[str] = None
    is_complete: bool = False
    # bumped by the store on every write; observers use it to drop stale events
    version: int = 0


class DrawResult(BaseModel):
    drawer_id: str
    giftee_id: str
    giftee_name: str


class DrawOptions(BaseModel):
    drawer_id: str
    viable_ids: List[str]
    # False when no candidate keeps the draw solvable and the raw legal set is returned
    safe: bool = True


class Caller(BaseModel):
    """Already-verified identity handed to the core by the session layer."""
    role: Role
    participant_id: Optional[str] = None
