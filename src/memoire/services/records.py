"""
Record store for memoire application.

Memories and admin profiles live in one DuckDB file. When a database bucket
is configured the file is restored from GCS on first use and pushed back in
the background after every write, so a fresh container starts with the same
archive.
"""

import json
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import duckdb

from ..config import get_config, get_database_path
from ..error_handling import DatabaseError, StorageError, ValidationError
from ..logging_config import get_logger, log_error, log_performance, log_user_action
from ..models.database import DatabaseManager, create_database, get_database_manager
from ..models.memory import MemoryRecord, normalize_tags
from .storage import StorageService, get_storage_service

logger = get_logger(__name__)

DATABASE_FILENAME = "memories.db"

_RECORD_COLUMNS = "id, type, title, src, thumbnail, date, created_at, duration, tags, album_photos"


@dataclass
class Profile:
    """Row of the profiles table."""

    user_id: str
    email: str
    password_hash: str | None
    is_admin: bool


class RecordStore:
    """
    DuckDB-backed store for memory records and profiles.

    Args:
        db_path: Local DuckDB file (defaults to DATABASE_PATH)
        storage_service: Used for GCS backups when sync is enabled
        sync_enabled: Push the file to the database bucket after writes
    """

    def __init__(
        self,
        db_path: str | None = None,
        storage_service: StorageService | None = None,
        sync_enabled: bool | None = None,
    ):
        self.local_db_path = Path(db_path or get_database_path())
        self.storage_service = storage_service
        if sync_enabled is None:
            sync_enabled = storage_service is not None and bool(get_config().get("GCS_DATABASE_BUCKET"))
        self._sync_enabled = sync_enabled

        self._db_manager: DatabaseManager | None = None
        self._init_lock = threading.Lock()
        self._sync_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="memoire-db-sync")
        self._sync_lock = threading.Lock()
        self._pending_sync: Future | None = None
        self._last_sync_time: datetime | None = None

        logger.info("record_store_initialized", local_db_path=str(self.local_db_path), sync_enabled=sync_enabled)

    @property
    def db_manager(self) -> DatabaseManager:
        """Get database manager, restoring or creating the file on first use."""
        if self._db_manager is None:
            with self._init_lock:
                if self._db_manager is None:
                    self._db_manager = self._open_database()
        return self._db_manager

    def _open_database(self) -> DatabaseManager:
        try:
            if not self.local_db_path.exists() and self._sync_enabled:
                self._download_from_gcs()

            if self.local_db_path.exists():
                return get_database_manager(str(self.local_db_path), create_if_missing=False)

            manager = create_database(str(self.local_db_path))
            logger.info("new_database_created", local_path=str(self.local_db_path))
            return manager
        except (RuntimeError, OSError, duckdb.Error) as e:
            raise DatabaseError(
                f"Failed to open record store: {e}",
                details={"local_path": str(self.local_db_path)},
                original_exception=e,
            ) from e

    def _download_from_gcs(self) -> bool:
        """Restore the local file from the database bucket. Returns False when no backup exists."""
        if self.storage_service is None:
            raise StorageError("No storage service configured for database restore", code="storage_not_configured")
        try:
            if not self.storage_service.database_file_exists(DATABASE_FILENAME):
                logger.info("gcs_database_not_found", filename=DATABASE_FILENAME)
                return False

            data = self.storage_service.download_database_file(DATABASE_FILENAME)
            self.local_db_path.parent.mkdir(parents=True, exist_ok=True)
            self.local_db_path.write_bytes(data)
            log_user_action("system", "database_restored_from_gcs", size=len(data))
            return True
        except StorageError:
            if self.local_db_path.exists():
                self.local_db_path.unlink()
            raise

    # GCS sync

    def upload_to_gcs(self) -> bool:
        """
        Push the local database file to the database bucket.

        Returns:
            bool: True if uploaded, False if sync is disabled
        """
        if not self._sync_enabled or self.storage_service is None:
            return False

        start = time.perf_counter()
        # Flush the WAL so the file on disk is complete
        self.db_manager.execute_query("CHECKPOINT")
        data = self.local_db_path.read_bytes()
        self.storage_service.upload_database_file(data, DATABASE_FILENAME)

        self._last_sync_time = datetime.now(UTC)
        log_performance("database_sync_to_gcs", time.perf_counter() - start, size=len(data))
        return True

    def _sync_in_background(self) -> None:
        try:
            self.upload_to_gcs()
        except (StorageError, DatabaseError, OSError, duckdb.Error) as e:
            log_error(e, {"operation": "database_sync_to_gcs"})

    def trigger_async_sync(self) -> None:
        """Schedule a background upload unless one is already queued."""
        if not self._sync_enabled:
            return
        with self._sync_lock:
            if self._pending_sync is not None and not self._pending_sync.done():
                logger.debug("database_sync_already_pending")
                return
            self._pending_sync = self._sync_executor.submit(self._sync_in_background)

    def wait_for_sync(self, timeout: float = 30.0) -> bool:
        """Block until the queued sync finishes. Returns False on timeout."""
        with self._sync_lock:
            pending = self._pending_sync
        if pending is None:
            return True
        try:
            pending.result(timeout=timeout)
            return True
        except TimeoutError:
            logger.warning("database_sync_timeout", timeout_seconds=timeout)
            return False

    def close(self) -> None:
        """Finish pending syncs and close the connection."""
        self._sync_executor.shutdown(wait=True)
        if self._db_manager is not None:
            self._db_manager.close()
            self._db_manager = None

    # Memory records

    def insert_record(self, record: MemoryRecord) -> MemoryRecord:
        """
        Insert a new memory record.

        Raises:
            ValidationError: If the record breaks an invariant
            DatabaseError: If the insert fails
        """
        problems = record.validate()
        if problems:
            raise ValidationError(
                f"Invalid memory record: {'; '.join(problems)}",
                details={"record_id": record.id, "problems": problems},
            )

        album_json = json.dumps([p.to_dict() for p in record.album_photos]) if record.album_photos else None
        try:
            self.db_manager.execute_query(
                f"INSERT INTO memories ({_RECORD_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, CAST(? AS VARCHAR[]), ?)",
                (
                    record.id,
                    record.type.value,
                    record.title,
                    record.src,
                    record.thumbnail,
                    _to_db_timestamp(record.date),
                    _to_db_timestamp(record.created_at or datetime.now(UTC)),
                    record.duration,
                    list(record.tags),
                    album_json,
                ),
            )
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to insert memory record: {e}",
                details={"record_id": record.id},
                original_exception=e,
            ) from e

        log_user_action("system", "memory_record_inserted", record_id=record.id, type=record.type.value)
        self.trigger_async_sync()
        return record

    def list_records(self) -> list[MemoryRecord]:
        """All records, newest ``date`` first, ties broken by insertion time."""
        start = time.perf_counter()
        rows = self._query(f"SELECT {_RECORD_COLUMNS} FROM memories ORDER BY date DESC, created_at DESC")
        records = [_row_to_record(row) for row in rows]
        log_performance("list_records", time.perf_counter() - start, count=len(records))
        return records

    def get_record(self, record_id: str) -> MemoryRecord | None:
        rows = self._query(f"SELECT {_RECORD_COLUMNS} FROM memories WHERE id = ?", (record_id,))
        return _row_to_record(rows[0]) if rows else None

    def update_record_tags(self, record_id: str, tags: list[str]) -> MemoryRecord:
        """
        Replace the tags of a record.

        Raises:
            DatabaseError: If the record does not exist or the update fails
        """
        cleaned = normalize_tags(tags)
        rows = self._query(
            "UPDATE memories SET tags = CAST(? AS VARCHAR[]) WHERE id = ? RETURNING id", (cleaned, record_id)
        )
        if not rows:
            raise DatabaseError(f"Memory record not found: {record_id}", code="record_not_found")

        log_user_action("system", "memory_tags_updated", record_id=record_id, tags=cleaned)
        self.trigger_async_sync()
        record = self.get_record(record_id)
        if record is None:
            raise DatabaseError(f"Memory record vanished after tag update: {record_id}", code="record_not_found")
        return record

    def delete_record(self, record_id: str) -> bool:
        """
        Delete a record by ID.

        Returns:
            True if deleted, False if not found
        """
        rows = self._query("DELETE FROM memories WHERE id = ? RETURNING id", (record_id,))
        deleted = bool(rows)
        if deleted:
            logger.info("memory_record_deleted", record_id=record_id)
            self.trigger_async_sync()
        else:
            logger.warning("memory_record_not_found_for_deletion", record_id=record_id)
        return deleted

    def list_tags(self) -> list[str]:
        """Every tag in use, sorted case-insensitively."""
        rows = self._query("SELECT DISTINCT unnest(tags) AS tag FROM memories")
        return sorted({row[0] for row in rows if row[0]}, key=str.lower)

    def count_records(self) -> int:
        rows = self._query("SELECT COUNT(*) FROM memories")
        return rows[0][0] if rows else 0

    # Profiles

    def get_profile(self, user_id: str) -> Profile | None:
        rows = self._query(
            "SELECT user_id, email, password_hash, is_admin FROM profiles WHERE user_id = ?", (user_id,)
        )
        return Profile(*rows[0]) if rows else None

    def get_profile_by_email(self, email: str) -> Profile | None:
        rows = self._query(
            "SELECT user_id, email, password_hash, is_admin FROM profiles WHERE lower(email) = lower(?)", (email,)
        )
        return Profile(*rows[0]) if rows else None

    def is_admin(self, user_id: str) -> bool:
        profile = self.get_profile(user_id)
        return bool(profile and profile.is_admin)

    def upsert_profile(self, user_id: str, email: str, password_hash: str | None, is_admin: bool) -> Profile:
        """Create or replace a profile row."""
        self._query(
            """INSERT INTO profiles (user_id, email, password_hash, is_admin)
               VALUES (?, ?, ?, ?)
               ON CONFLICT (user_id) DO UPDATE SET
                   email = excluded.email,
                   password_hash = excluded.password_hash,
                   is_admin = excluded.is_admin""",
            (user_id, email, password_hash, is_admin),
        )
        logger.info("profile_upserted", user_id=user_id, is_admin=is_admin)
        self.trigger_async_sync()
        return Profile(user_id=user_id, email=email, password_hash=password_hash, is_admin=is_admin)

    def _query(self, query: str, parameters: tuple | None = None) -> list[tuple]:
        try:
            return self.db_manager.execute_query(query, parameters)
        except duckdb.Error as e:
            raise DatabaseError(f"Record store query failed: {e}", original_exception=e) from e

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()


def _to_db_timestamp(value: datetime) -> datetime:
    """DuckDB TIMESTAMP columns hold naive UTC."""
    if value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


def _row_to_record(row: tuple) -> MemoryRecord:
    return MemoryRecord.from_dict(dict(zip([c.strip() for c in _RECORD_COLUMNS.split(",")], row)))


_record_store: RecordStore | None = None
_record_store_lock = threading.Lock()


def get_record_store() -> RecordStore:
    """Get the process-wide record store."""
    global _record_store
    if _record_store is None:
        with _record_store_lock:
            if _record_store is None:
                storage_service = get_storage_service() if get_config().get("GCS_DATABASE_BUCKET") else None
                _record_store = RecordStore(storage_service=storage_service)
    return _record_store


def reset_record_store() -> None:
    """Close and forget the global record store."""
    global _record_store
    with _record_store_lock:
        if _record_store is not None:
            _record_store.close()
            _record_store = None
