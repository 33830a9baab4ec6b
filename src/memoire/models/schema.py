"""
Database schema definitions for memoire application.

This module contains the SQL schema for the record store.
"""

MEMORIES_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS memories (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    title TEXT NOT NULL,
    src TEXT NOT NULL,
    thumbnail TEXT,
    date TIMESTAMP NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    duration TEXT,
    tags VARCHAR[],
    album_photos TEXT
);
"""

# Sessions read their admin flag from here
PROFILES_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS profiles (
    user_id TEXT PRIMARY KEY,
    email TEXT NOT NULL,
    password_hash TEXT,
    is_admin BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

MEMORIES_TABLE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_memories_date ON memories(date DESC, created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_memories_type ON memories(type);",
]

REQUIRED_COLUMNS = {
    "memories": {
        "id",
        "type",
        "title",
        "src",
        "thumbnail",
        "date",
        "created_at",
        "duration",
        "tags",
        "album_photos",
    },
    "profiles": {"user_id", "email", "password_hash", "is_admin"},
}

ALL_SCHEMA_STATEMENTS = [MEMORIES_TABLE_SCHEMA, PROFILES_TABLE_SCHEMA] + MEMORIES_TABLE_INDEXES


def get_schema_statements() -> list[str]:
    """
    Get all database schema creation statements.

    Returns:
        List of SQL statements to create tables and indexes
    """
    return ALL_SCHEMA_STATEMENTS


def validate_schema_compatibility() -> bool:
    """
    Check that every column the models rely on appears in the table schemas.

    Returns:
        True if schema is compatible, False otherwise
    """
    sources = {"memories": MEMORIES_TABLE_SCHEMA.lower(), "profiles": PROFILES_TABLE_SCHEMA.lower()}
    return all(column in sources[table] for table, columns in REQUIRED_COLUMNS.items() for column in columns)
