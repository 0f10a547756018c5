"""Create the study assistant SQLite database from schema."""

import sqlite3
from pathlib import Path

from study_assistant.core.config import settings
from study_assistant.db.schema import SCHEMA_STATEMENTS

SQLITE_PREFIX = "sqlite:///"


def database_path() -> Path:
    if not settings.database_url.startswith(SQLITE_PREFIX):
        raise SystemExit(f"Only sqlite URLs can be created locally, got: {settings.database_url}")
    return Path(settings.database_url[len(SQLITE_PREFIX):])


def create_database():
    """Create database with schema."""
    db_path = database_path()
    if db_path.exists():
        print(f"Database already exists at: {db_path}")
        response = input("Do you want to recreate it? (y/N): ")
        if response.lower() != 'y':
            print("Skipping database creation.")
            return

        db_path.unlink()
        print("Deleted existing database.")

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    # Enable foreign keys
    cursor.execute("PRAGMA foreign_keys = ON")

    for statement in SCHEMA_STATEMENTS:
        cursor.execute(statement)

    conn.commit()
    conn.close()

    print(f"Database created successfully at: {db_path}")


if __name__ == "__main__":
    create_database()
