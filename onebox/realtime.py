"""Realtime broadcaster pushing ingestion events to websocket clients."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import WebSocket

logger = structlog.get_logger()

NEW_EMAIL = "new-email"
SYNC_PROGRESS = "sync-progress"


class Broadcaster:
    """At-most-once fan-out to the websockets connected right now.

    There is no buffering: clients that connect later miss earlier
    events, and a client whose send fails is dropped.
    """

    def __init__(self) -> None:
        self._clients: set[WebSocket] = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._clients.add(websocket)
        logger.info("realtime_client_connected", clients=len(self._clients))

    def disconnect(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)
        logger.info("realtime_client_disconnected", clients=len(self._clients))

    async def emit(self, event: str, data: Any) -> None:
        message = {"event": event, "data": data}
        for websocket in list(self._clients):
            try:
                await websocket.send_json(message)
            except Exception as exc:
                logger.warning("realtime_send_failed", event=event, error=str(exc))
                self._clients.discard(websocket)
