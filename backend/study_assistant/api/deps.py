"""Dependency injection for API routes."""
from pathlib import Path

import study_assistant.core.config as config_module
from study_assistant.db.database import get_database
from study_assistant.services.chat_session import ChatSession, SessionRegistry
from study_assistant.services.chat_store import ChatStore
from study_assistant.services.event_bus import event_bus
from study_assistant.services.library_service import LibraryService
from study_assistant.services.object_storage import LocalObjectStorage

session_registry = SessionRegistry()


def get_settings():
    """Get application settings (re-read after reloads)."""
    return config_module.settings


async def get_library_service() -> LibraryService:
    settings = get_settings()
    db = await get_database()
    return LibraryService(
        db,
        user_id=settings.user_id,
        storage=LocalObjectStorage(Path(settings.storage_dir)),
        embeddings_enabled=bool(settings.openai_api_key),
        on_event=event_bus.publish,
    )


async def get_chat_store() -> ChatStore:
    db = await get_database()
    return ChatStore(db, get_settings().user_id)


async def get_chat_session(session_id: str) -> ChatSession:
    """Get or create the in-memory session for an id."""
    library = await get_library_service()
    store = await get_chat_store()

    return session_registry.get_or_create(
        session_id,
        lambda sid: ChatSession(
            sid,
            folder_loader=library.list_folders,
            store=store,
            on_event=event_bus.publish,
        ),
    )
