"""Folder database queries."""

from datetime import datetime
from typing import Optional, List
import databases
import secrets

from study_assistant.schemas.library import Folder


def _row_to_folder(row) -> Folder:
    return Folder(
        id=row["id"],
        name=row["name"],
        created_at=row["createdAt"],
        documents=[],
    )


async def create_folder(db: databases.Database, user_id: str, name: str) -> Folder:
    """Create a new folder."""
    folder_id = secrets.token_urlsafe(16)
    now = datetime.utcnow()

    query = """
        INSERT INTO Folder (id, userId, name, createdAt)
        VALUES (:id, :user_id, :name, :created_at)
    """

    await db.execute(
        query,
        {
            "id": folder_id,
            "user_id": user_id,
            "name": name,
            "created_at": now.isoformat(),
        }
    )

    return Folder(id=folder_id, name=name, created_at=now, documents=[])


async def get_folder(db: databases.Database, folder_id: str) -> Optional[Folder]:
    """Get folder by ID (without documents)."""
    query = "SELECT * FROM Folder WHERE id = :folder_id"
    row = await db.fetch_one(query, {"folder_id": folder_id})

    if not row:
        return None

    return _row_to_folder(row)


async def list_folders(db: databases.Database, user_id: str) -> List[Folder]:
    """List folders for a user, oldest first."""
    query = "SELECT * FROM Folder WHERE userId = :user_id ORDER BY createdAt ASC, rowid ASC"
    rows = await db.fetch_all(query, {"user_id": user_id})
    return [_row_to_folder(row) for row in rows]


async def delete_folder(db: databases.Database, folder_id: str) -> bool:
    """Delete folder and cascade delete its documents."""
    # sqlite execute() reports lastrowid, not rowcount, so check existence first
    if await get_folder(db, folder_id) is None:
        return False

    async with db.transaction():
        await db.execute(
            "DELETE FROM Document WHERE folderId = :folder_id", {"folder_id": folder_id}
        )
        await db.execute(
            "DELETE FROM Folder WHERE id = :folder_id", {"folder_id": folder_id}
        )
    return True
