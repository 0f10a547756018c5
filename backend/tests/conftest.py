"""Shared fixtures for the study assistant tests.

Run with: python -m pytest backend/tests -v
"""

from datetime import datetime

import databases
import pytest
import pytest_asyncio

from study_assistant.core.config import Settings
from study_assistant.db.database import init_schema
from study_assistant.schemas.library import Document, Folder


def make_settings(**overrides) -> Settings:
    """Settings with every provider key blanked so the environment cannot leak in."""
    values = {
        "openai_api_key": "",
        "deepseek_api_key": "",
        "gemini_api_key": "",
        "active_provider": "deepseek",
        "system_prompt": "",
        "context_max_chars": 8000,
    }
    values.update(overrides)
    return Settings(**values)


def make_document(name: str, content: str, status: str = "success", folder_id: str = "f") -> Document:
    return Document(
        id=f"doc-{name}",
        folder_id=folder_id,
        file_name=name,
        file_type=name.rsplit(".", 1)[-1],
        content=content,
        parse_status=status,
        created_at=datetime.utcnow(),
    )


def make_folder(name: str, *documents: Document) -> Folder:
    return Folder(id=f"folder-{name}", name=name, documents=list(documents))


@pytest.fixture
def settings():
    return make_settings()


@pytest_asyncio.fixture
async def db(tmp_path):
    """A connected SQLite document store with the schema applied."""
    database = databases.Database(f"sqlite:///{tmp_path / 'test.db'}")
    await database.connect()
    await init_schema(database)
    try:
        yield database
    finally:
        await database.disconnect()
