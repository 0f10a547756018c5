from enum import Enum
from pydantic import BaseModel
from datetime import datetime
from typing import Optional
import uuid


class EventType(str, Enum):
    MESSAGE_APPENDED = "message_appended"
    ASSISTANT_THINKING = "assistant_thinking"
    ASSISTANT_REPLIED = "assistant_replied"
    ASSISTANT_FAILED = "assistant_failed"
    DOCUMENT_INGESTED = "document_ingested"


class AppEvent(BaseModel):
    id: str
    type: EventType
    timestamp: datetime
    source_id: str
    data: dict
    parent_id: Optional[str] = None

    @classmethod
    def create(
        cls,
        event_type: EventType,
        source_id: str,
        data: dict,
        parent_id: Optional[str] = None
    ) -> "AppEvent":
        return cls(
            id=str(uuid.uuid4()),
            type=event_type,
            timestamp=datetime.utcnow(),
            source_id=source_id,
            data=data,
            parent_id=parent_id
        )
