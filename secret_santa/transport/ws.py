# secret_santa/transport/ws.py
from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from secret_santa.transport.dispatcher import dispatch_message
from secret_santa.transport.protocols import OutError
from secret_santa.transport.session import caller_after, caller_from_cookies

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def ws_observer(websocket: WebSocket):
    """
    Observer connection: snapshot on connect, room events from the bus after that.
    Also accepts the same messages as the HTTP routes; replies go to this socket only.
    """
    await websocket.accept()

    conn_id = uuid.uuid4().hex[:10]
    caller = caller_from_cookies(websocket.cookies)
    wsman = websocket.app.state.wsman
    await wsman.add(conn_id, websocket)
    logger.debug("Observer %s connected (caller=%s)", conn_id, caller)

    try:
        for e in await dispatch_message(app=websocket.app, caller=caller, raw={"type": "snapshot"}):
            await websocket.send_json(e)

        while True:
            try:
                raw = await websocket.receive_json()
            except ValueError:
                err = OutError(code="BAD_MESSAGE", message="Invalid JSON", kind="bad_message")
                await websocket.send_json(err.model_dump())
                continue

            to_sender = await dispatch_message(app=websocket.app, caller=caller, raw=raw)
            caller = caller_after(caller, to_sender)
            for e in to_sender:
                await websocket.send_json(e)

    except WebSocketDisconnect:
        logger.debug("Observer %s disconnected", conn_id)
    finally:
        await wsman.remove(conn_id)
