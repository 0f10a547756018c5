"""Conversation and message database queries."""

from datetime import datetime
from typing import Optional, List
import databases
import json
import secrets

from study_assistant.schemas.chat import Conversation, GroundingMetadata, Message


async def create_conversation(
    db: databases.Database,
    user_id: str,
    provider: str,
    conversation_id: Optional[str] = None,
) -> Conversation:
    """Create a conversation record."""
    conversation_id = conversation_id or secrets.token_urlsafe(16)
    now = datetime.utcnow()
    title = f"Chat - {now.strftime('%Y-%m-%d')}"

    query = """
        INSERT INTO Conversation (id, userId, provider, title, createdAt)
        VALUES (:id, :user_id, :provider, :title, :created_at)
    """

    await db.execute(
        query,
        {
            "id": conversation_id,
            "user_id": user_id,
            "provider": provider,
            "title": title,
            "created_at": now.isoformat(),
        }
    )

    return Conversation(id=conversation_id, provider=provider, title=title, created_at=now)


async def get_conversation(db: databases.Database, conversation_id: str) -> Optional[Conversation]:
    """Get conversation by ID."""
    query = "SELECT * FROM Conversation WHERE id = :conversation_id"
    row = await db.fetch_one(query, {"conversation_id": conversation_id})

    if not row:
        return None

    return Conversation(
        id=row["id"],
        provider=row["provider"],
        title=row["title"],
        created_at=row["createdAt"],
    )


async def save_message(db: databases.Database, conversation_id: str, message: Message) -> None:
    """Persist one finished message."""
    query = """
        INSERT INTO Message (id, conversationId, role, content, sourcesJson, createdAt)
        VALUES (:id, :conversation_id, :role, :content, :sources, :created_at)
    """

    sources = (
        message.grounding_metadata.model_dump_json()
        if message.grounding_metadata else None
    )

    await db.execute(
        query,
        {
            "id": message.id,
            "conversation_id": conversation_id,
            "role": message.role,
            "content": message.content,
            "sources": sources,
            "created_at": message.created_at.isoformat(),
        }
    )


async def list_messages(db: databases.Database, conversation_id: str) -> List[Message]:
    """List messages of a conversation in creation order."""
    query = """
        SELECT * FROM Message WHERE conversationId = :conversation_id
        ORDER BY createdAt ASC, rowid ASC
    """
    rows = await db.fetch_all(query, {"conversation_id": conversation_id})

    return [
        Message(
            id=row["id"],
            conversation_id=row["conversationId"],
            role=row["role"],
            content=row["content"],
            created_at=row["createdAt"],
            grounding_metadata=(
                GroundingMetadata.model_validate(json.loads(row["sourcesJson"]))
                if row["sourcesJson"] else None
            ),
        )
        for row in rows
    ]
