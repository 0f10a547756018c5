"""Chat HTTP routes: send a message, read and reset transcripts."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from study_assistant.api.deps import get_chat_session, get_chat_store, get_settings, session_registry
from study_assistant.core.errors import EmptyMessageError, SessionBusyError
from study_assistant.core.rate_limit import CHAT_RATE_LIMIT, limiter
from study_assistant.schemas.chat import Message
from study_assistant.services.chat_store import ChatStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


class ChatRequest(BaseModel):
    message: str
    use_search: bool = False
    provider: Optional[str] = None


class ChatResponse(BaseModel):
    session_id: str
    reply: Message
    messages: List[Message]
    conversation_id: Optional[str] = None


class TranscriptResponse(BaseModel):
    session_id: str
    status: str
    messages: List[Message]
    conversation_id: Optional[str] = None


# ── Sessions ──────────────────────────────────────────────────────────

@router.post("/sessions/{session_id}/messages", response_model=ChatResponse)
@limiter.limit(CHAT_RATE_LIMIT)
async def send_message(request: Request, session_id: str, body: ChatRequest):
    """Run one chat turn. Provider failures come back as an error message in the transcript."""
    session = await get_chat_session(session_id)

    try:
        reply = await session.submit(
            body.message,
            get_settings(),
            use_search=body.use_search,
            provider=body.provider,
        )
    except EmptyMessageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return ChatResponse(
        session_id=session_id,
        reply=reply,
        messages=session.messages,
        conversation_id=session.state.conversation_id,
    )


@router.get("/sessions/{session_id}", response_model=TranscriptResponse)
async def get_transcript(session_id: str):
    """Current in-memory transcript of a session."""
    session = session_registry.get(session_id)
    if session is None:
        return TranscriptResponse(session_id=session_id, status="idle", messages=[])

    return TranscriptResponse(
        session_id=session_id,
        status=session.state.status,
        messages=session.messages,
        conversation_id=session.state.conversation_id,
    )


@router.delete("/sessions/{session_id}")
async def new_chat(session_id: str):
    """Start a new chat in this session. The idle session is dropped from memory."""
    session = session_registry.get(session_id)
    if session is not None:
        try:
            session.reset()
        except SessionBusyError as e:
            raise HTTPException(status_code=409, detail=str(e))
        session_registry.discard(session_id)
    return {"status": "reset", "session_id": session_id}


@router.post("/sessions/{session_id}/restore/{conversation_id}", response_model=TranscriptResponse)
async def restore_conversation(
    session_id: str,
    conversation_id: str,
    store: ChatStore = Depends(get_chat_store),
):
    """Load a persisted conversation into a session."""
    if await store.get_conversation(conversation_id) is None:
        raise HTTPException(status_code=404, detail=f"Conversation not found: {conversation_id}")
    messages = await store.list_messages(conversation_id)

    session = await get_chat_session(session_id)
    try:
        session.restore(conversation_id, messages)
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return TranscriptResponse(
        session_id=session_id,
        status=session.state.status,
        messages=session.messages,
        conversation_id=conversation_id,
    )


# ── Conversations ─────────────────────────────────────────────────────

@router.get("/conversations/{conversation_id}/messages")
async def conversation_messages(conversation_id: str, store: ChatStore = Depends(get_chat_store)):
    """Persisted messages of a conversation, oldest first."""
    messages = await store.list_messages(conversation_id)
    return {"conversation_id": conversation_id, "messages": [m.model_dump() for m in messages]}
