"""Websocket endpoint for live ingestion events."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from onebox.deps import get_broadcaster
from onebox.realtime import Broadcaster

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def events(
    websocket: WebSocket,
    broadcaster: Annotated[Broadcaster, Depends(get_broadcaster)],
):
    await broadcaster.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        broadcaster.disconnect(websocket)
