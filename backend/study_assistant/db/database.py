"""Database connection and lifecycle management for the document store."""

import logging
from typing import Optional

import databases

import study_assistant.core.config as config_module
from study_assistant.db.schema import SCHEMA_STATEMENTS

logger = logging.getLogger(__name__)

_database: Optional[databases.Database] = None


def _build_database() -> databases.Database:
    return databases.Database(config_module.settings.database_url)


async def get_database() -> databases.Database:
    """Get database connection."""
    global _database
    if _database is None:
        _database = _build_database()
    return _database


async def init_schema(db: databases.Database) -> None:
    """Create tables if they do not exist yet."""
    for statement in SCHEMA_STATEMENTS:
        await db.execute(statement)


async def connect_db():
    """Connect to database on startup."""
    db = await get_database()
    if not db.is_connected:
        await db.connect()
        await init_schema(db)
        logger.info("Connected to document store at %s", config_module.settings.database_url)


async def disconnect_db():
    """Disconnect from database on shutdown."""
    global _database
    if _database is not None and _database.is_connected:
        await _database.disconnect()


def reset_database() -> None:
    """Drop the cached connection object (useful for testing)."""
    global _database
    _database = None
