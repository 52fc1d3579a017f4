# secret_santa/domain/common/types.py
from __future__ import annotations

from typing import Literal

from secret_santa.store.models import GameLifecycle, Role, SelectionPhase

# How the boundary should treat a rejected operation
ErrorKind = Literal[
    "validation",      # bad input, retry with a corrected one
    "phase",           # operation outside its legal state
    "authorization",   # wrong caller
    "concurrency",     # turn already locked / not locked, back off
    "feasibility",     # roster cannot be completed, needs an admin reset
    "not_found",
    "bad_message",
]

__all__ = ["ErrorKind", "GameLifecycle", "Role", "SelectionPhase"]
