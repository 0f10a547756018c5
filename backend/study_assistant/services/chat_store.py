"""Persistence adapter for chat sessions."""

from typing import List, Optional

import databases

from study_assistant.db.queries import conversations as conversation_queries
from study_assistant.schemas.chat import Conversation, Message


class ChatStore:
    """Writes conversations and messages to the document store."""

    def __init__(self, db: databases.Database, user_id: str):
        self.db = db
        self.user_id = user_id

    async def create_conversation(self, provider: str) -> Conversation:
        return await conversation_queries.create_conversation(self.db, self.user_id, provider)

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return await conversation_queries.get_conversation(self.db, conversation_id)

    async def save_message(self, conversation_id: str, message: Message) -> None:
        await conversation_queries.save_message(self.db, conversation_id, message)

    async def list_messages(self, conversation_id: str) -> List[Message]:
        return await conversation_queries.list_messages(self.db, conversation_id)
