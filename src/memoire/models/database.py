"""
Database initialization and management for memoire application.

This module provides functions to initialize the DuckDB record store and
manage its connection.
"""

import threading
from pathlib import Path
from typing import Any

import duckdb

from ..logging_config import get_logger
from .schema import REQUIRED_COLUMNS, get_schema_statements, validate_schema_compatibility

logger = get_logger(__name__)


class DatabaseManager:
    """
    Manages a DuckDB database connection and its schema.

    The connection is shared by every Streamlit session in the process, so
    statement execution is serialised with a lock.
    """

    def __init__(self, db_path: str):
        """
        Initialize DatabaseManager.

        Args:
            db_path: Path to the DuckDB database file
        """
        self.db_path = db_path
        self._connection: duckdb.DuckDBPyConnection | None = None
        self._lock = threading.RLock()

    def connect(self) -> duckdb.DuckDBPyConnection:
        """Get or create a database connection."""
        with self._lock:
            if self._connection is None:
                self._connection = duckdb.connect(self.db_path)
                logger.info("database_connected", db_path=self.db_path)
            return self._connection

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                logger.info("database_closed", db_path=self.db_path)

    def initialize_schema(self) -> None:
        """
        Create all tables and indexes that don't exist yet.

        Raises:
            RuntimeError: If schema validation fails
            duckdb.Error: If database operations fail
        """
        if not validate_schema_compatibility():
            raise RuntimeError("Schema is not compatible with MemoryRecord model")

        with self._lock:
            conn = self.connect()
            try:
                for statement in get_schema_statements():
                    logger.debug("executing_schema_statement", statement=statement.strip().splitlines()[0])
                    conn.execute(statement)
                logger.info("database_schema_initialized", db_path=self.db_path)
            except duckdb.Error as e:
                logger.error("database_schema_failed", db_path=self.db_path, error=str(e))
                raise

    def verify_schema(self) -> bool:
        """
        Verify that the database schema is correctly set up.

        Returns:
            True if schema is valid, False otherwise
        """
        try:
            for table, required in REQUIRED_COLUMNS.items():
                rows = self.execute_query(
                    "SELECT column_name FROM information_schema.columns WHERE table_name = ?", (table,)
                )
                if not rows:
                    logger.warning("table_missing", table=table)
                    return False

                missing = required - {row[0] for row in rows}
                if missing:
                    logger.warning("columns_missing", table=table, columns=sorted(missing))
                    return False

            return True

        except duckdb.Error as e:
            logger.error("schema_verification_failed", error=str(e))
            return False

    def execute_query(self, query: str, parameters: tuple | list | None = None) -> list[tuple]:
        """
        Execute a SQL query and return results.

        Raises:
            duckdb.Error: If query execution fails
        """
        with self._lock:
            conn = self.connect()
            try:
                if parameters:
                    result = conn.execute(query, parameters)
                else:
                    result = conn.execute(query)
                return result.fetchall()
            except duckdb.Error as e:
                logger.error("query_failed", query=" ".join(query.split())[:120], error=str(e))
                raise

    def __enter__(self) -> "DatabaseManager":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.close()


def create_database(db_path: str) -> DatabaseManager:
    """
    Create and initialize a new DuckDB database.

    Raises:
        RuntimeError: If database creation fails
    """
    try:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        db_manager = DatabaseManager(db_path)
        db_manager.initialize_schema()

        if not db_manager.verify_schema():
            raise RuntimeError("Schema verification failed after creation")

        logger.info("database_created", db_path=db_path)
        return db_manager

    except (duckdb.Error, OSError) as e:
        logger.error("database_creation_failed", db_path=db_path, error=str(e))
        raise RuntimeError(f"Database creation failed: {e}") from e


def get_database_manager(db_path: str, create_if_missing: bool = True) -> DatabaseManager:
    """
    Get a DatabaseManager instance, optionally creating the database if it doesn't exist.

    Raises:
        FileNotFoundError: If database doesn't exist and create_if_missing is False
    """
    if not Path(db_path).exists():
        if create_if_missing:
            return create_database(db_path)
        raise FileNotFoundError(f"Database file not found: {db_path}")

    db_manager = DatabaseManager(db_path)
    if not db_manager.verify_schema():
        logger.warning("schema_reinitializing", db_path=db_path)
        db_manager.initialize_schema()

    return db_manager
