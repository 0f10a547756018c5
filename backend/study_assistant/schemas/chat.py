"""Pydantic schemas for chat messages and provider results."""

from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, Field


Role = Literal["user", "assistant"]

# Transcript-only status, never persisted
MessageStatus = Literal["complete", "thinking", "error"]


class GroundingChunk(BaseModel):
    """One web source the provider used to answer."""
    uri: Optional[str] = None
    title: Optional[str] = None


class GroundingMetadata(BaseModel):
    """Citation information returned by a search-grounded provider."""
    grounding_chunks: List[GroundingChunk] = Field(default_factory=list)
    web_search_queries: List[str] = Field(default_factory=list)


class GenerationResult(BaseModel):
    """Uniform result of a provider dispatch."""
    text: str
    grounding_metadata: Optional[GroundingMetadata] = None


class Message(BaseModel):
    id: str
    role: Role
    content: str
    created_at: datetime
    conversation_id: Optional[str] = None
    grounding_metadata: Optional[GroundingMetadata] = None
    status: MessageStatus = "complete"


class Conversation(BaseModel):
    id: str
    provider: str
    title: str
    created_at: datetime
