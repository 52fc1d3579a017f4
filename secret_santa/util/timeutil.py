# secret_santa/util/timeutil.py
from __future__ import annotations

import time


def now_ts() -> int:
    """Unix time in whole seconds."""
    return int(time.time())
