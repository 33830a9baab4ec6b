"""Storage service for Google Cloud Storage operations."""

from datetime import datetime
from pathlib import PurePosixPath
from urllib.parse import quote, unquote

from google.auth.exceptions import DefaultCredentialsError
from google.cloud import storage  # type: ignore[attr-defined]
from google.cloud.exceptions import GoogleCloudError, NotFound

from ..config import get_config, get_public_base_url
from ..error_handling import StorageError
from ..logging_config import get_logger

logger = get_logger(__name__)

MEDIA_PREFIX = "media"
DATABASE_PREFIX = "databases"


class StorageService:
    """
    Object storage for uploaded media, backed by a public GCS bucket.

    Objects live under ``media/<key>``. Photos and thumbnails are referenced
    by public URL, videos by their storage path.
    """

    def __init__(
        self,
        bucket_name: str | None = None,
        project_id: str | None = None,
        database_bucket_name: str | None = None,
        public_base_url: str | None = None,
    ) -> None:
        """
        Initialize the storage service.

        Args:
            bucket_name: GCS media bucket (defaults to GCS_MEDIA_BUCKET)
            project_id: GCP project ID (defaults to GOOGLE_CLOUD_PROJECT)
            database_bucket_name: Bucket for DuckDB backups (defaults to GCS_DATABASE_BUCKET, optional)
            public_base_url: Base of public object URLs (defaults to GCS_PUBLIC_BASE_URL)
        """
        config = get_config()
        self.media_bucket_name = bucket_name or config.get("GCS_MEDIA_BUCKET")
        self.project_id = project_id or config.get("GOOGLE_CLOUD_PROJECT")
        self.database_bucket_name = database_bucket_name or config.get("GCS_DATABASE_BUCKET")
        self.public_base_url = (public_base_url or get_public_base_url()).rstrip("/")

        if not self.media_bucket_name:
            raise StorageError("GCS_MEDIA_BUCKET environment variable is required")
        if not self.project_id:
            raise StorageError("GOOGLE_CLOUD_PROJECT environment variable is required")

        try:
            self.client = storage.Client(project=self.project_id)
            self.media_bucket = self.client.bucket(self.media_bucket_name)
            self.database_bucket = self.client.bucket(self.database_bucket_name) if self.database_bucket_name else None
        except (GoogleCloudError, DefaultCredentialsError) as e:
            raise StorageError(f"Failed to initialize GCS client: {e}", original_exception=e) from e

        logger.info(
            "storage_service_initialized",
            media_bucket=self.media_bucket_name,
            database_bucket=self.database_bucket_name,
            project_id=self.project_id,
        )

    @staticmethod
    def object_path(key: str) -> str:
        """
        Build the storage path for an object key.

        Directory parts are stripped to prevent path traversal.
        """
        safe_key = PurePosixPath(key.replace("\\", "/")).name
        if not safe_key or safe_key in {".", ".."}:
            raise StorageError(f"Invalid object key: {key!r}")
        return f"{MEDIA_PREFIX}/{safe_key}"

    def upload_object(self, key: str, data: bytes, content_type: str) -> str:
        """
        Upload bytes under ``key``.

        Args:
            key: Object key, usually ``<uuid><ext>``
            data: Raw file data
            content_type: MIME type stored on the object

        Returns:
            str: Storage path of the new object

        Raises:
            StorageError: If upload fails
        """
        path = self.object_path(key)
        try:
            blob = self.media_bucket.blob(path)
            blob.metadata = {"uploaded_at": datetime.now().isoformat()}
            blob.cache_control = "public, max-age=3600"
            blob.upload_from_string(data, content_type=content_type)
        except GoogleCloudError as e:
            raise StorageError(
                f"Failed to upload object '{path}': {e}",
                details={"path": path, "size": len(data)},
                original_exception=e,
            ) from e

        logger.info("object_uploaded", path=path, size=len(data), content_type=content_type)
        return path

    def get_public_url(self, path: str) -> str:
        """Public URL of a storage path. Public URLs are returned unchanged."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._public_prefix()}{quote(path)}"

    def path_from_reference(self, reference: str) -> str:
        """
        Map a record reference (public URL or storage path) back to a storage path.

        Raises:
            StorageError: If the URL points outside the media bucket
        """
        prefix = self._public_prefix()
        if reference.startswith(prefix):
            return unquote(reference[len(prefix) :].split("?", 1)[0])
        if reference.startswith(("http://", "https://")):
            raise StorageError(
                f"URL does not belong to bucket '{self.media_bucket_name}': {reference}",
                details={"reference": reference},
            )
        return reference

    def delete_objects(self, paths: list[str]) -> None:
        """
        Delete objects by storage path or public URL.

        Objects that are already gone are skipped with a warning.

        Raises:
            StorageError: On the first object that cannot be deleted
        """
        for reference in paths:
            path = self.path_from_reference(reference)
            try:
                self.media_bucket.blob(path).delete()
                logger.info("object_deleted", path=path)
            except NotFound:
                logger.warning("object_already_missing", path=path)
            except GoogleCloudError as e:
                raise StorageError(
                    f"Failed to delete object '{path}': {e}",
                    details={"path": path},
                    original_exception=e,
                ) from e

    def check_bucket_exists(self) -> bool:
        """Check if the media bucket exists and is accessible."""
        try:
            self.media_bucket.reload()
            return True
        except NotFound:
            logger.error("bucket_not_found", bucket=self.media_bucket_name)
            return False
        except GoogleCloudError as e:
            logger.error("bucket_check_failed", bucket=self.media_bucket_name, error=str(e))
            return False

    # Database backup

    def _require_database_bucket(self):
        if self.database_bucket is None:
            raise StorageError("GCS_DATABASE_BUCKET is not configured")
        return self.database_bucket

    def database_file_exists(self, filename: str) -> bool:
        """Check whether a database backup exists."""
        bucket = self._require_database_bucket()
        try:
            exists: bool = bucket.blob(f"{DATABASE_PREFIX}/{filename}").exists()
            return exists
        except GoogleCloudError as e:
            raise StorageError(f"Failed to check database backup '{filename}': {e}", original_exception=e) from e

    def upload_database_file(self, file_data: bytes, filename: str) -> str:
        """
        Upload a database file to the database bucket.

        Returns:
            str: GCS path of the backup

        Raises:
            StorageError: If upload fails
        """
        bucket = self._require_database_bucket()
        gcs_path = f"{DATABASE_PREFIX}/{filename}"
        try:
            blob = bucket.blob(gcs_path)
            blob.metadata = {"file_type": "database", "upload_timestamp": datetime.now().isoformat()}
            blob.upload_from_string(file_data, content_type="application/octet-stream")
        except GoogleCloudError as e:
            logger.error("database_upload_failed", filename=filename, error=str(e))
            raise StorageError(f"Failed to upload database file '{filename}': {e}", original_exception=e) from e

        logger.info("database_file_uploaded", gcs_path=gcs_path, bucket=self.database_bucket_name, size=len(file_data))
        return gcs_path

    def download_database_file(self, filename: str) -> bytes:
        """
        Download a database file from the database bucket.

        Raises:
            StorageError: If the backup is missing or download fails
        """
        bucket = self._require_database_bucket()
        gcs_path = f"{DATABASE_PREFIX}/{filename}"
        try:
            file_data: bytes = bucket.blob(gcs_path).download_as_bytes()
        except NotFound as e:
            raise StorageError(f"Database file not found: {gcs_path}", original_exception=e) from e
        except GoogleCloudError as e:
            logger.error("database_download_failed", filename=filename, error=str(e))
            raise StorageError(f"Failed to download database file '{filename}': {e}", original_exception=e) from e

        logger.info("database_file_downloaded", gcs_path=gcs_path, size=len(file_data))
        return file_data

    def _public_prefix(self) -> str:
        return f"{self.public_base_url}/{self.media_bucket_name}/"


_storage_service: StorageService | None = None


def get_storage_service() -> StorageService:
    """
    Get the global storage service instance.

    Returns:
        StorageService: Global storage service instance
    """
    global _storage_service

    if _storage_service is None:
        _storage_service = StorageService()

    return _storage_service


def reset_storage_service() -> None:
    """Drop the global instance so the next call re-reads configuration."""
    global _storage_service
    _storage_service = None
