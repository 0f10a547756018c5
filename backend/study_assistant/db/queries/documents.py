"""Document database queries."""

from datetime import datetime
from typing import Optional, List
import databases
import json
import secrets

from study_assistant.schemas.library import Document, LibraryStats


def _row_to_document(row) -> Document:
    return Document(
        id=row["id"],
        folder_id=row["folderId"],
        file_name=row["fileName"],
        file_type=row["fileType"],
        file_size=row["fileSize"],
        storage_path=row["storagePath"],
        content=row["content"] or "",
        parse_status=row["parseStatus"],
        parse_error=row["parseError"],
        embedding=json.loads(row["embeddingJson"]) if row["embeddingJson"] else None,
        created_at=row["createdAt"],
    )


async def create_document(
    db: databases.Database,
    user_id: str,
    folder_id: str,
    file_name: str,
    file_type: str,
    file_size: int,
    storage_path: Optional[str],
    content: str,
    parse_status: str,
    parse_error: Optional[str] = None,
) -> Document:
    """Insert a document record once parsing has finished."""
    document_id = secrets.token_urlsafe(16)
    now = datetime.utcnow()

    query = """
        INSERT INTO Document (id, userId, folderId, fileName, fileType, fileSize, storagePath,
                              content, parseStatus, parseError, createdAt)
        VALUES (:id, :user_id, :folder_id, :file_name, :file_type, :file_size, :storage_path,
                :content, :parse_status, :parse_error, :created_at)
    """

    await db.execute(
        query,
        {
            "id": document_id,
            "user_id": user_id,
            "folder_id": folder_id,
            "file_name": file_name,
            "file_type": file_type,
            "file_size": file_size,
            "storage_path": storage_path,
            "content": content,
            "parse_status": parse_status,
            "parse_error": parse_error,
            "created_at": now.isoformat(),
        }
    )

    return Document(
        id=document_id,
        folder_id=folder_id,
        file_name=file_name,
        file_type=file_type,
        file_size=file_size,
        storage_path=storage_path,
        content=content,
        parse_status=parse_status,
        parse_error=parse_error,
        created_at=now,
    )


async def get_document(db: databases.Database, document_id: str) -> Optional[Document]:
    """Get document by ID."""
    query = "SELECT * FROM Document WHERE id = :document_id"
    row = await db.fetch_one(query, {"document_id": document_id})

    if not row:
        return None

    return _row_to_document(row)


async def list_documents_for_folder(db: databases.Database, folder_id: str) -> List[Document]:
    """List documents in a folder, upload order."""
    query = """
        SELECT * FROM Document WHERE folderId = :folder_id
        ORDER BY createdAt ASC, rowid ASC
    """
    rows = await db.fetch_all(query, {"folder_id": folder_id})
    return [_row_to_document(row) for row in rows]


async def list_documents_for_user(db: databases.Database, user_id: str) -> List[Document]:
    """List every document a user owns, upload order."""
    query = """
        SELECT * FROM Document WHERE userId = :user_id
        ORDER BY createdAt ASC, rowid ASC
    """
    rows = await db.fetch_all(query, {"user_id": user_id})
    return [_row_to_document(row) for row in rows]


async def set_embedding(db: databases.Database, document_id: str, embedding: List[float]) -> None:
    """Attach the embedding vector computed from a document's content."""
    query = "UPDATE Document SET embeddingJson = :embedding WHERE id = :document_id"
    await db.execute(query, {"document_id": document_id, "embedding": json.dumps(embedding)})


async def delete_document(db: databases.Database, document_id: str) -> None:
    """Delete a document record."""
    query = "DELETE FROM Document WHERE id = :document_id"
    await db.execute(query, {"document_id": document_id})


async def get_stats(db: databases.Database, user_id: str) -> LibraryStats:
    """Count documents and sum stored bytes."""
    query = """
        SELECT COUNT(*) AS documentCount, COALESCE(SUM(fileSize), 0) AS totalBytes
        FROM Document WHERE userId = :user_id
    """
    row = await db.fetch_one(query, {"user_id": user_id})
    return LibraryStats(
        document_count=row["documentCount"] if row else 0,
        total_bytes=row["totalBytes"] if row else 0,
    )
