"""
Pytest configuration and fixtures for memoire tests.
"""

import io
import tempfile
from collections.abc import Generator
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from PIL import Image

from memoire.config import get_config
from memoire.models.memory import AlbumPhoto, MediaType, MemoryRecord
from memoire.services.auth import UserInfo


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Set up test environment variables and a clean config cache."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("GCS_MEDIA_BUCKET", "test-media-bucket")
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "test-project")
    monkeypatch.delenv("GCS_DATABASE_BUCKET", raising=False)
    monkeypatch.delenv("GCS_PUBLIC_BASE_URL", raising=False)
    monkeypatch.delenv("MAX_BATCH_SIZE_MB", raising=False)
    monkeypatch.delenv("ADMIN_EMAIL", raising=False)
    monkeypatch.delenv("ADMIN_PASSWORD_HASH", raising=False)
    monkeypatch.delenv("IAP_AUDIENCE", raising=False)
    get_config().clear_cache()
    yield
    get_config().clear_cache()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def sample_image_data() -> bytes:
    """A small JPEG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (16, 12), color=(200, 100, 50)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def photo_record() -> MemoryRecord:
    return MemoryRecord(
        id="photo-1",
        type=MediaType.PHOTO,
        title="Beach day",
        src="https://storage.googleapis.com/test-media-bucket/media/photo-1.jpg",
        date=datetime(2024, 3, 5, 10, 0),
        tags=["summer"],
    )


@pytest.fixture
def video_record() -> MemoryRecord:
    return MemoryRecord(
        id="video-1",
        type=MediaType.VIDEO,
        title="Birthday clip",
        src="media/video-1.mp4",
        thumbnail="https://storage.googleapis.com/test-media-bucket/media/video-1_thumb.jpg",
        date=datetime(2024, 1, 20, 18, 30),
        duration="1:05",
    )


@pytest.fixture
def album_record() -> MemoryRecord:
    photos = [AlbumPhoto(src=f"https://storage.googleapis.com/test-media-bucket/media/a{i}.jpg") for i in range(3)]
    return MemoryRecord(
        id="album-1",
        type=MediaType.PHOTO,
        title="Road trip",
        src=photos[0].src,
        date=datetime(2023, 12, 1, 9, 0),
        album_photos=photos,
    )


@pytest.fixture
def admin_session() -> UserInfo:
    return UserInfo(user_id="admin-1", email="admin@example.com", is_admin=True)


@pytest.fixture
def visitor_session() -> UserInfo:
    return UserInfo(user_id="user-1", email="user@example.com", is_admin=False)


@pytest.fixture
def mock_repository() -> MagicMock:
    """Repository double that echoes paths and builds public URLs."""
    repository = MagicMock()
    repository.upload_object.side_effect = lambda key, data, content_type: f"media/{key}"
    repository.get_public_url.side_effect = lambda path: f"https://cdn.example.com/{path}"
    repository.insert_record.side_effect = lambda record: record
    repository.list_tags.return_value = []
    return repository
