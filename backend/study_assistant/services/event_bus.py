from typing import Dict, Optional
from fastapi import WebSocket
import json
import asyncio
import logging

from study_assistant.core.events import AppEvent

logger = logging.getLogger(__name__)


class EventBus:
    """Fan out session and ingestion events to websocket listeners.

    A listener registered with a ``session_id`` only receives events whose
    ``source_id`` matches it; a listener without one receives everything.
    """

    def __init__(self):
        self.listeners: Dict[WebSocket, Optional[str]] = {}
        self._lock = asyncio.Lock()

    @property
    def connections(self) -> set:
        return set(self.listeners)

    async def connect(self, websocket: WebSocket, session_id: Optional[str] = None):
        await websocket.accept()
        async with self._lock:
            self.listeners[websocket] = session_id

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self.listeners.pop(websocket, None)

    async def broadcast(self, event: dict, source_id: Optional[str] = None):
        """Send an event to every listener interested in its source."""
        message = json.dumps(event, default=str)
        dead = []

        for ws, session_id in list(self.listeners.items()):
            if session_id is not None and session_id != source_id:
                continue
            try:
                await ws.send_text(message)
            except Exception as e:
                logger.debug("Dropping websocket listener: %s", e)
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self.listeners.pop(ws, None)

    async def publish(self, event: AppEvent):
        await self.broadcast(event.model_dump(mode="json"), source_id=event.source_id)


event_bus = EventBus()
