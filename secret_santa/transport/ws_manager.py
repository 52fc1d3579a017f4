# secret_santa/transport/ws_manager.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict

from fastapi import WebSocket

logger = logging.getLogger(__name__)


@dataclass
class Conn:
    conn_id: str
    ws: WebSocket


class WSManager:
    """
    In-memory registry of observer connections.
    - conn_id -> websocket (anonymous observers welcome)
    Transport-only: no domain rules.
    """
    def __init__(self) -> None:
        self._conns: Dict[str, Conn] = {}
        self._lock = asyncio.Lock()

    async def add(self, conn_id: str, ws: WebSocket) -> None:
        async with self._lock:
            self._conns[conn_id] = Conn(conn_id=conn_id, ws=ws)

    async def remove(self, conn_id: str) -> None:
        async with self._lock:
            self._conns.pop(conn_id, None)

    async def broadcast(self, event: dict) -> None:
        # copy conns under lock, send outside lock
        async with self._lock:
            conns = list(self._conns.values())

        for c in conns:
            try:
                await c.ws.send_json(event)
            except Exception:
                # dead socket; ws.py removes it on disconnect
                logger.debug("Dropping event %s for closed connection %s", event.get("type"), c.conn_id)

    async def size(self) -> int:
        async with self._lock:
            return len(self._conns)
