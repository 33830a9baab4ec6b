"""
Unit tests for storage service.
"""

from unittest.mock import MagicMock, patch

import pytest
from google.cloud.exceptions import GoogleCloudError, NotFound

from memoire.error_handling import StorageError
from memoire.services.storage import StorageService


def make_service(mock_client_class, **kwargs):
    mock_client = MagicMock()
    mock_bucket = MagicMock()
    mock_client.bucket.return_value = mock_bucket
    mock_client_class.return_value = mock_client
    return StorageService(**kwargs), mock_client, mock_bucket


class TestStorageService:
    """Test cases for StorageService."""

    @patch("memoire.services.storage.storage.Client")
    def test_init_success(self, mock_client_class):
        """Test successful initialization."""
        service, mock_client, _ = make_service(mock_client_class)

        assert service.media_bucket_name == "test-media-bucket"
        assert service.project_id == "test-project"
        assert service.database_bucket is None
        mock_client_class.assert_called_once_with(project="test-project")
        mock_client.bucket.assert_called_once_with("test-media-bucket")

    @patch.dict("os.environ", {}, clear=True)
    def test_init_missing_bucket(self):
        """Test initialization fails without a media bucket."""
        with pytest.raises(StorageError, match="GCS_MEDIA_BUCKET"):
            StorageService()

    @patch("memoire.services.storage.storage.Client")
    def test_object_path_strips_directories(self, mock_client_class):
        assert StorageService.object_path("abc.jpg") == "media/abc.jpg"
        assert StorageService.object_path("../../etc/passwd") == "media/passwd"
        assert StorageService.object_path("a\\b\\c.png") == "media/c.png"

    def test_object_path_rejects_empty_key(self):
        with pytest.raises(StorageError):
            StorageService.object_path("")

    @patch("memoire.services.storage.storage.Client")
    def test_upload_object_success(self, mock_client_class):
        """Test object upload returns the storage path."""
        service, _, mock_bucket = make_service(mock_client_class)
        mock_blob = MagicMock()
        mock_bucket.blob.return_value = mock_blob

        path = service.upload_object("uuid.jpg", b"data", "image/jpeg")

        assert path == "media/uuid.jpg"
        mock_bucket.blob.assert_called_once_with("media/uuid.jpg")
        mock_blob.upload_from_string.assert_called_once_with(b"data", content_type="image/jpeg")
        assert "uploaded_at" in mock_blob.metadata

    @patch("memoire.services.storage.storage.Client")
    def test_upload_object_error(self, mock_client_class):
        service, _, mock_bucket = make_service(mock_client_class)
        mock_bucket.blob.return_value.upload_from_string.side_effect = GoogleCloudError("boom")

        with pytest.raises(StorageError, match="Failed to upload object"):
            service.upload_object("uuid.jpg", b"data", "image/jpeg")

    @patch("memoire.services.storage.storage.Client")
    def test_public_url_round_trip(self, mock_client_class):
        """Public URLs map back to the storage path they were built from."""
        service, _, _ = make_service(mock_client_class)

        url = service.get_public_url("media/my photo.jpg")

        assert url == "https://storage.googleapis.com/test-media-bucket/media/my%20photo.jpg"
        assert service.get_public_url(url) == url
        assert service.path_from_reference(url) == "media/my photo.jpg"
        assert service.path_from_reference("media/clip.mp4") == "media/clip.mp4"

    @patch("memoire.services.storage.storage.Client")
    def test_custom_public_base_url(self, mock_client_class):
        service, _, _ = make_service(mock_client_class, public_base_url="https://cdn.example.com/")
        assert service.get_public_url("media/a.jpg") == "https://cdn.example.com/test-media-bucket/media/a.jpg"

    @patch("memoire.services.storage.storage.Client")
    def test_foreign_url_rejected(self, mock_client_class):
        service, _, _ = make_service(mock_client_class)

        with pytest.raises(StorageError, match="does not belong"):
            service.path_from_reference("https://elsewhere.example.com/a.jpg")

    @patch("memoire.services.storage.storage.Client")
    def test_delete_objects(self, mock_client_class):
        """Missing objects are skipped, existing ones deleted."""
        service, _, mock_bucket = make_service(mock_client_class)
        present = MagicMock()
        missing = MagicMock()
        missing.delete.side_effect = NotFound("gone")
        mock_bucket.blob.side_effect = [present, missing]

        service.delete_objects([service.get_public_url("media/a.jpg"), "media/b.mp4"])

        assert [c.args[0] for c in mock_bucket.blob.call_args_list] == ["media/a.jpg", "media/b.mp4"]
        present.delete.assert_called_once()

    @patch("memoire.services.storage.storage.Client")
    def test_delete_objects_error(self, mock_client_class):
        service, _, mock_bucket = make_service(mock_client_class)
        mock_bucket.blob.return_value.delete.side_effect = GoogleCloudError("denied")

        with pytest.raises(StorageError, match="Failed to delete object"):
            service.delete_objects(["media/a.jpg"])

    @patch("memoire.services.storage.storage.Client")
    def test_check_bucket_exists(self, mock_client_class):
        service, _, mock_bucket = make_service(mock_client_class)
        assert service.check_bucket_exists()

        mock_bucket.reload.side_effect = NotFound("missing")
        assert not service.check_bucket_exists()


class TestDatabaseBackup:
    """Test cases for the database backup helpers."""

    @patch("memoire.services.storage.storage.Client")
    def test_backup_requires_bucket(self, mock_client_class):
        service, _, _ = make_service(mock_client_class)

        with pytest.raises(StorageError, match="GCS_DATABASE_BUCKET"):
            service.upload_database_file(b"db", "memories.db")

    @patch("memoire.services.storage.storage.Client")
    def test_upload_and_download_database_file(self, mock_client_class):
        service, _, mock_bucket = make_service(mock_client_class, database_bucket_name="test-db-bucket")
        mock_blob = MagicMock()
        mock_blob.download_as_bytes.return_value = b"db"
        mock_bucket.blob.return_value = mock_blob

        assert service.upload_database_file(b"db", "memories.db") == "databases/memories.db"
        assert service.download_database_file("memories.db") == b"db"
        mock_blob.upload_from_string.assert_called_once_with(b"db", content_type="application/octet-stream")

    @patch("memoire.services.storage.storage.Client")
    def test_download_missing_database_file(self, mock_client_class):
        service, _, mock_bucket = make_service(mock_client_class, database_bucket_name="test-db-bucket")
        mock_bucket.blob.return_value.download_as_bytes.side_effect = NotFound("gone")

        with pytest.raises(StorageError, match="Database file not found"):
            service.download_database_file("memories.db")
