# secret_santa/store/roster.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from secret_santa.store.models import Roster

logger = logging.getLogger(__name__)


def load_roster(path: Union[str, Path]) -> Roster:
    """
    Load and validate the roster JSON file.
    Raises pydantic.ValidationError on an inconsistent roster and OSError if unreadable.
    """
    p = Path(path)
    roster = Roster.model_validate_json(p.read_text(encoding="utf-8"))
    logger.info(
        "Loaded roster from %s: %d participants in %d groups",
        p, len(roster.participants), len(roster.groups),
    )
    return roster
