"""Chat session state and turn orchestration.

A session moves ``idle -> awaiting_response -> idle``. While a request is in
flight the assistant slot holds a ``thinking`` placeholder which is replaced
in place by the answer or by an error message. The session only returns to
``idle`` once the turn has been saved. State values are immutable; the
transition functions below return new states.
"""

import logging
import secrets
from datetime import datetime
from collections import OrderedDict
from typing import Awaitable, Callable, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from study_assistant.core.config import Settings
from study_assistant.core.errors import (
    EmptyMessageError,
    ProviderRateLimitError,
    SessionBusyError,
)
from study_assistant.core.events import AppEvent, EventType
from study_assistant.schemas.chat import GenerationResult, Message
from study_assistant.schemas.library import Folder
from study_assistant.services.context_collector import collect_file_context
from study_assistant.services.provider_dispatch import generate_response

logger = logging.getLogger(__name__)

SessionStatus = Literal["idle", "awaiting_response"]

THINKING_TEXT = "Thinking..."

MAX_SESSIONS = 256

EventCallback = Callable[[AppEvent], Awaitable[None]]
FolderLoader = Callable[[], Awaitable[List[Folder]]]


class SessionState(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    status: SessionStatus = "idle"
    messages: Tuple[Message, ...] = ()
    conversation_id: Optional[str] = None


def _new_message(role: str, content: str, **fields) -> Message:
    return Message(
        id=secrets.token_urlsafe(12),
        role=role,
        content=content,
        created_at=datetime.utcnow(),
        **fields,
    )


def _replace_placeholder(state: SessionState, reply: Message) -> SessionState:
    messages = list(state.messages)
    if not messages or messages[-1].status != "thinking":
        raise RuntimeError("No pending assistant placeholder to replace")
    messages[-1] = reply
    return state.model_copy(update={"messages": tuple(messages)})


def begin_turn(state: SessionState, text: str) -> Tuple[SessionState, Message]:
    """Append the user message and a thinking placeholder."""
    if not text or not text.strip():
        raise EmptyMessageError("Message cannot be empty")
    if state.status == "awaiting_response":
        raise SessionBusyError(f"Session {state.session_id} is still waiting for a reply")

    user_message = _new_message("user", text)
    placeholder = _new_message("assistant", THINKING_TEXT, status="thinking")
    new_state = state.model_copy(update={
        "status": "awaiting_response",
        "messages": state.messages + (user_message, placeholder),
    })
    return new_state, user_message


def complete_turn(state: SessionState, result: GenerationResult) -> Tuple[SessionState, Message]:
    """Replace the placeholder with the provider's answer."""
    reply = _new_message(
        "assistant",
        result.text,
        grounding_metadata=result.grounding_metadata,
    )
    return _replace_placeholder(state, reply), reply


def describe_error(error: Exception) -> str:
    if isinstance(error, ProviderRateLimitError):
        return f"Error: {error.user_hint()}"
    return f"Error: something went wrong: {error}"


def fail_turn(state: SessionState, error: Exception) -> Tuple[SessionState, Message]:
    """Replace the placeholder with a visible error message."""
    reply = _new_message("assistant", describe_error(error), status="error")
    return _replace_placeholder(state, reply), reply


def end_turn(state: SessionState) -> SessionState:
    """Reopen the session for the next submission."""
    return state.model_copy(update={"status": "idle"})


def attach_conversation(state: SessionState, conversation_id: str) -> SessionState:
    return state.model_copy(update={"conversation_id": conversation_id})


class ChatSession:
    """Owns one session's state and runs chat turns against it."""

    def __init__(
        self,
        session_id: str,
        folder_loader: FolderLoader,
        store=None,
        dispatcher=generate_response,
        on_event: Optional[EventCallback] = None,
    ):
        self.state = SessionState(session_id=session_id)
        self.folder_loader = folder_loader
        self.store = store
        self.dispatcher = dispatcher
        self.on_event = on_event

    @property
    def messages(self) -> List[Message]:
        return list(self.state.messages)

    @property
    def busy(self) -> bool:
        return self.state.status == "awaiting_response"

    async def _emit(self, event_type: EventType, data: dict) -> None:
        if self.on_event is None:
            return
        try:
            await self.on_event(AppEvent.create(event_type, self.state.session_id, data))
        except Exception:
            logger.exception("Failed to emit %s event", event_type.value)

    async def submit(
        self,
        text: str,
        settings: Settings,
        use_search: bool = False,
        provider: Optional[str] = None,
    ) -> Message:
        """Run one chat turn. Returns the assistant message that took the slot."""
        # Checked and set before the first await so only one turn is in flight
        self.state, user_message = begin_turn(self.state, text)
        provider = provider or settings.active_provider

        await self._emit(EventType.MESSAGE_APPENDED, {"message_id": user_message.id})
        await self._emit(EventType.ASSISTANT_THINKING, {"provider": provider})

        # The session stays busy until the turn is saved
        try:
            try:
                folders = await self.folder_loader()
                context = collect_file_context(folders, settings.context_max_chars)
                result = await self.dispatcher(
                    user_message.content,
                    context,
                    provider,
                    settings.provider_config(provider),
                    use_search=use_search,
                    system_prompt=settings.system_prompt,
                )
            except Exception as e:
                logger.warning("Chat turn failed in session %s: %s", self.state.session_id, e)
                self.state, reply = fail_turn(self.state, e)
                await self._emit(EventType.ASSISTANT_FAILED, {"error": str(e)})
                return reply

            self.state, reply = complete_turn(self.state, result)
            await self._emit(EventType.ASSISTANT_REPLIED, {"message_id": reply.id})
            await self._persist(provider, user_message, reply)
            return reply
        finally:
            self.state = end_turn(self.state)

    async def _persist(self, provider: str, user_message: Message, reply: Message) -> None:
        """Save the turn. Store failures never touch the in-memory transcript."""
        if self.store is None:
            return
        try:
            if self.state.conversation_id is None:
                conversation = await self.store.create_conversation(provider)
                self.state = attach_conversation(self.state, conversation.id)
            await self.store.save_message(self.state.conversation_id, user_message)
            await self.store.save_message(self.state.conversation_id, reply)
        except Exception:
            logger.exception("Failed to save messages for session %s", self.state.session_id)

    def restore(self, conversation_id: str, messages: List[Message]) -> None:
        """Load a persisted conversation into an idle session."""
        if self.busy:
            raise SessionBusyError(f"Session {self.state.session_id} is still waiting for a reply")
        self.state = SessionState(
            session_id=self.state.session_id,
            messages=tuple(messages),
            conversation_id=conversation_id,
        )

    def reset(self) -> None:
        """Start a new chat: clear the transcript and forget the conversation."""
        if self.busy:
            raise SessionBusyError(f"Session {self.state.session_id} is still waiting for a reply")
        self.state = SessionState(session_id=self.state.session_id)


class SessionRegistry:
    """In-memory session store keyed by session id.

    Holds at most ``max_sessions`` entries; the least recently used idle
    sessions are dropped first. Busy sessions are never evicted.
    """

    def __init__(self, max_sessions: int = MAX_SESSIONS):
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, ChatSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> Optional[ChatSession]:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def get_or_create(self, session_id: str, factory: Callable[[str], ChatSession]) -> ChatSession:
        session = self.get(session_id)
        if session is None:
            session = self._sessions[session_id] = factory(session_id)
            self._evict(keep=session_id)
        return session

    def discard(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def _evict(self, keep: str) -> None:
        for session_id in list(self._sessions):
            if len(self._sessions) <= self.max_sessions:
                return
            if session_id != keep and not self._sessions[session_id].busy:
                del self._sessions[session_id]
                logger.debug("Evicted idle chat session %s", session_id)

    def clear(self) -> None:
        self._sessions.clear()
