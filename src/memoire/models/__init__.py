"""
Models module for memoire application.

This module contains data models and schemas:
- MemoryRecord: Data class for a gallery entry
- Database schemas and table definitions
- DatabaseManager: Database connection and schema management
"""

from .database import DatabaseManager, create_database, get_database_manager
from .memory import AlbumPhoto, MediaType, MemoryRecord, format_duration, normalize_tags
from .schema import get_schema_statements, validate_schema_compatibility

__all__ = [
    "AlbumPhoto",
    "MediaType",
    "MemoryRecord",
    "format_duration",
    "normalize_tags",
    "DatabaseManager",
    "create_database",
    "get_database_manager",
    "get_schema_statements",
    "validate_schema_compatibility",
]
