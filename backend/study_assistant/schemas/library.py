"""Pydantic schemas for folders and their documents."""

from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, Field


ParseStatus = Literal["success", "failed", "pending"]


class Document(BaseModel):
    """One uploaded file plus its extracted text and parse outcome."""
    id: str
    folder_id: str
    file_name: str
    file_type: str = Field(description="Inferred kind, usually the lowercased extension")
    file_size: int = 0
    storage_path: Optional[str] = None
    content: str = ""
    parse_status: ParseStatus = "pending"
    parse_error: Optional[str] = None
    embedding: Optional[List[float]] = None
    created_at: datetime

    @property
    def is_text(self) -> bool:
        return self.parse_status == "success" and bool(self.content)


class Folder(BaseModel):
    """Named grouping of documents, documents kept in stored order."""
    id: str
    name: str
    created_at: Optional[datetime] = None
    documents: List[Document] = Field(default_factory=list)


class LibraryStats(BaseModel):
    document_count: int
    total_bytes: int
