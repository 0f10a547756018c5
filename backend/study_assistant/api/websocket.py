from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from study_assistant.services.event_bus import event_bus

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, session_id: Optional[str] = None):
    """Stream chat and ingestion events. Pass ``?session_id=`` to follow one chat."""
    await event_bus.connect(websocket, session_id)
    try:
        while True:
            # Listen-only channel; incoming text just keeps the socket open
            await websocket.receive_text()
    except WebSocketDisconnect:
        await event_bus.disconnect(websocket)
