"""
Unit tests for the DuckDB record store.
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from memoire.error_handling import DatabaseError, StorageError, ValidationError
from memoire.models.memory import MemoryRecord
from memoire.services.records import DATABASE_FILENAME, RecordStore


@pytest.fixture
def store(temp_dir):
    record_store = RecordStore(db_path=str(temp_dir / "memories.db"), sync_enabled=False)
    yield record_store
    record_store.close()


class TestRecordStoreMemories:
    """Test cases for memory record persistence."""

    def test_insert_and_get(self, store, photo_record):
        store.insert_record(photo_record)

        loaded = store.get_record("photo-1")

        assert loaded is not None
        assert loaded.title == "Beach day"
        assert loaded.tags == ["summer"]
        assert loaded.date == datetime(2024, 3, 5, 10, 0)

    def test_album_round_trip(self, store, album_record):
        store.insert_record(album_record)

        loaded = store.get_record("album-1")

        assert loaded.is_album
        assert loaded.album_photos == album_record.album_photos

    def test_list_orders_newest_first(self, store, photo_record, video_record, album_record):
        for record in (video_record, album_record, photo_record):
            store.insert_record(record)

        assert [r.id for r in store.list_records()] == ["photo-1", "video-1", "album-1"]
        assert store.count_records() == 3

    def test_same_date_ties_break_on_created_at(self, store):
        day = datetime(2024, 5, 1)
        first = MemoryRecord.create_new(type="photo", title="first", src="a", date=day)
        second = MemoryRecord.create_new(type="photo", title="second", src="b", date=day)
        first.created_at = datetime(2024, 5, 1, 8, 0)
        second.created_at = datetime(2024, 5, 1, 9, 0)

        store.insert_record(first)
        store.insert_record(second)

        assert [r.title for r in store.list_records()] == ["second", "first"]

    def test_invalid_record_rejected(self, store, video_record):
        video_record.thumbnail = None

        with pytest.raises(ValidationError):
            store.insert_record(video_record)
        assert store.count_records() == 0

    def test_duplicate_id_fails(self, store, photo_record):
        store.insert_record(photo_record)

        with pytest.raises(DatabaseError):
            store.insert_record(photo_record)

    def test_update_tags(self, store, photo_record):
        store.insert_record(photo_record)

        updated = store.update_record_tags("photo-1", ["Beach", "beach", "Sea"])

        assert updated.tags == ["Beach", "Sea"]
        assert store.get_record("photo-1").tags == ["Beach", "Sea"]

    def test_update_tags_missing_record(self, store):
        with pytest.raises(DatabaseError) as exc_info:
            store.update_record_tags("nope", ["x"])
        assert exc_info.value.code == "record_not_found"

    def test_update_tags_record_gone_before_reload(self, store, photo_record):
        store.insert_record(photo_record)
        store.get_record = MagicMock(return_value=None)

        with pytest.raises(DatabaseError) as exc_info:
            store.update_record_tags("photo-1", ["x"])
        assert exc_info.value.code == "record_not_found"

    def test_delete_record(self, store, photo_record):
        store.insert_record(photo_record)

        assert store.delete_record("photo-1")
        assert not store.delete_record("photo-1")
        assert store.get_record("photo-1") is None

    def test_list_tags(self, store, photo_record, video_record):
        video_record.tags = ["family", "Trips"]
        store.insert_record(photo_record)
        store.insert_record(video_record)

        assert store.list_tags() == ["family", "summer", "Trips"]


class TestRecordStoreProfiles:
    """Test cases for admin profiles."""

    def test_upsert_and_lookup(self, store):
        store.upsert_profile("u1", "Admin@Example.com", "hash", True)

        assert store.is_admin("u1")
        assert store.get_profile_by_email("admin@example.com").user_id == "u1"

        store.upsert_profile("u1", "admin@example.com", None, False)

        assert not store.is_admin("u1")
        assert store.get_profile("u1").password_hash is None

    def test_unknown_profile_is_not_admin(self, store):
        assert not store.is_admin("ghost")
        assert store.get_profile("ghost") is None


class TestRecordStoreSync:
    """Test cases for database backup to GCS."""

    def test_sync_disabled_without_bucket(self, temp_dir):
        store = RecordStore(db_path=str(temp_dir / "m.db"), storage_service=MagicMock())
        try:
            assert not store.upload_to_gcs()
        finally:
            store.close()

    def test_upload_to_gcs(self, temp_dir):
        storage_service = MagicMock()
        storage_service.database_file_exists.return_value = False
        store = RecordStore(db_path=str(temp_dir / "m.db"), storage_service=storage_service, sync_enabled=True)
        try:
            assert store.upload_to_gcs()
            data, filename = storage_service.upload_database_file.call_args.args
            assert filename == DATABASE_FILENAME
            assert len(data) > 0
        finally:
            store.close()

    def test_restore_from_gcs(self, temp_dir, photo_record):
        """A fresh container restores the file from the backup."""
        source_path = temp_dir / "source.db"
        source = RecordStore(db_path=str(source_path), sync_enabled=False)
        source.insert_record(photo_record)
        source.db_manager.execute_query("CHECKPOINT")
        source.close()

        storage_service = MagicMock()
        storage_service.database_file_exists.return_value = True
        storage_service.download_database_file.return_value = source_path.read_bytes()

        restored = RecordStore(
            db_path=str(temp_dir / "restored.db"), storage_service=storage_service, sync_enabled=True
        )
        try:
            assert restored.get_record("photo-1") is not None
        finally:
            restored.close()

    def test_restore_failure_propagates(self, temp_dir):
        storage_service = MagicMock()
        storage_service.database_file_exists.side_effect = StorageError("unreachable")
        store = RecordStore(db_path=str(temp_dir / "m.db"), storage_service=storage_service, sync_enabled=True)

        with pytest.raises(StorageError):
            store.count_records()
        store.close()

    def test_restore_without_storage_service(self, temp_dir):
        store = RecordStore(db_path=str(temp_dir / "m.db"), storage_service=None, sync_enabled=True)

        with pytest.raises(StorageError) as exc_info:
            store.count_records()
        assert exc_info.value.code == "storage_not_configured"
        store.close()

    def test_writes_trigger_background_sync(self, temp_dir, photo_record):
        storage_service = MagicMock()
        storage_service.database_file_exists.return_value = False
        store = RecordStore(db_path=str(temp_dir / "m.db"), storage_service=storage_service, sync_enabled=True)
        try:
            store.insert_record(photo_record)
            assert store.wait_for_sync(timeout=10)
            storage_service.upload_database_file.assert_called()
        finally:
            store.close()
