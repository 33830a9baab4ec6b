"""
Data-access interface for memoire application.

The upload, gallery and admin flows only talk to a ``MemoryRepository``.
``BackendRepository`` is the production implementation on top of GCS and
the DuckDB record store; tests substitute a mock.
"""

from typing import Protocol

from ..models.memory import MemoryRecord
from .records import RecordStore, get_record_store
from .storage import StorageService, get_storage_service


class MemoryRepository(Protocol):
    """Operations the application needs from its backend."""

    def list_records(self) -> list[MemoryRecord]: ...

    def insert_record(self, record: MemoryRecord) -> MemoryRecord: ...

    def update_record_tags(self, record_id: str, tags: list[str]) -> MemoryRecord: ...

    def delete_record(self, record_id: str) -> bool: ...

    def list_tags(self) -> list[str]: ...

    def upload_object(self, key: str, data: bytes, content_type: str) -> str: ...

    def delete_objects(self, paths: list[str]) -> None: ...

    def get_public_url(self, path: str) -> str: ...


class BackendRepository:
    """Routes object calls to StorageService and record calls to RecordStore."""

    def __init__(self, storage_service: StorageService | None = None, record_store: RecordStore | None = None):
        self._storage_service = storage_service
        self._record_store = record_store

    @property
    def storage(self) -> StorageService:
        if self._storage_service is None:
            self._storage_service = get_storage_service()
        return self._storage_service

    @property
    def records(self) -> RecordStore:
        if self._record_store is None:
            self._record_store = get_record_store()
        return self._record_store

    def list_records(self) -> list[MemoryRecord]:
        return self.records.list_records()

    def insert_record(self, record: MemoryRecord) -> MemoryRecord:
        return self.records.insert_record(record)

    def update_record_tags(self, record_id: str, tags: list[str]) -> MemoryRecord:
        return self.records.update_record_tags(record_id, tags)

    def delete_record(self, record_id: str) -> bool:
        return self.records.delete_record(record_id)

    def list_tags(self) -> list[str]:
        return self.records.list_tags()

    def upload_object(self, key: str, data: bytes, content_type: str) -> str:
        return self.storage.upload_object(key, data, content_type)

    def delete_objects(self, paths: list[str]) -> None:
        self.storage.delete_objects(paths)

    def get_public_url(self, path: str) -> str:
        return self.storage.get_public_url(path)


_repository: MemoryRepository | None = None


def get_repository() -> MemoryRepository:
    """Get the global repository instance."""
    global _repository
    if _repository is None:
        _repository = BackendRepository()
    return _repository


def set_repository(repository: MemoryRepository | None) -> None:
    """Replace the global repository. ``None`` restores the default on next use."""
    global _repository
    _repository = repository
