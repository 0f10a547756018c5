"""SQL schema for the document store."""

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS Folder (
        id TEXT PRIMARY KEY,
        userId TEXT NOT NULL,
        name TEXT NOT NULL,
        createdAt TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS Document (
        id TEXT PRIMARY KEY,
        userId TEXT NOT NULL,
        folderId TEXT NOT NULL,
        fileName TEXT NOT NULL,
        fileType TEXT NOT NULL,
        fileSize INTEGER DEFAULT 0 NOT NULL,
        storagePath TEXT,
        content TEXT DEFAULT '' NOT NULL,
        parseStatus TEXT DEFAULT 'pending' NOT NULL,
        parseError TEXT,
        embeddingJson TEXT,
        createdAt TEXT NOT NULL,
        FOREIGN KEY (folderId) REFERENCES Folder(id) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_document_folderId ON Document(folderId)",
    """
    CREATE TABLE IF NOT EXISTS Conversation (
        id TEXT PRIMARY KEY,
        userId TEXT NOT NULL,
        provider TEXT NOT NULL,
        title TEXT NOT NULL,
        createdAt TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS Message (
        id TEXT PRIMARY KEY,
        conversationId TEXT NOT NULL,
        role TEXT NOT NULL,
        content TEXT NOT NULL,
        sourcesJson TEXT,
        createdAt TEXT NOT NULL,
        FOREIGN KEY (conversationId) REFERENCES Conversation(id) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_message_conversationId ON Message(conversationId)",
]
