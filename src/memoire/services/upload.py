"""
Upload staging and orchestration for memoire application.

Files are staged first (titles, tags, order, previews), validated locally,
then uploaded one at a time. The first failure stops the batch; records that
were already written are kept and reported on the raised ``UploadError``.
"""

import time
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath

from ..config import MIB, get_max_batch_bytes
from ..error_handling import UploadError, ValidationError, get_error_handler
from ..logging_config import get_logger, log_performance, log_user_action
from ..models.memory import AlbumPhoto, MediaType, MemoryRecord, normalize_tags
from .media_processor import (
    MediaProcessor,
    get_media_processor,
    guess_mime_type,
    is_image,
    is_media,
    is_video,
    media_type_for,
)
from .previews import PreviewRegistry
from .repository import MemoryRepository, get_repository

logger = get_logger(__name__)

EMPTY_SELECTION_MESSAGE = "Please select files to upload"
MISSING_TITLES_MESSAGE = "Please enter titles for all files"
MISSING_ALBUM_TITLE_MESSAGE = "Please enter an album title"
ALBUM_TOO_SMALL_MESSAGE = "An album needs at least 2 photos"


class UploadSource(str, Enum):
    PICKER = "picker"
    DROP = "drop"


class UploadMode(str, Enum):
    SINGLE = "single"
    ALBUM = "album"


@dataclass
class IncomingFile:
    """A file as handed over by the picker or the drop zone."""

    name: str
    data: bytes
    mime_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class StagedFile:
    """A selected file waiting to be uploaded."""

    name: str
    data: bytes
    mime_type: str
    title: str
    tags: list[str] = field(default_factory=list)
    preview: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return is_image(self.mime_type)

    @property
    def is_video(self) -> bool:
        return is_video(self.mime_type)

    @property
    def extension(self) -> str:
        return PurePosixPath(self.name).suffix.lower()


def default_title(filename: str) -> str:
    """Text before the first dot of the filename."""
    return filename.split(".")[0] or filename


def format_file_size(size: float) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    return f"{round(size, 2):g} {units[index]}"


def size_limit_message(max_bytes: int) -> str:
    return f"Total upload size exceeds the {max_bytes // MIB} MB limit"


class UploadStage:
    """
    Ordered set of staged files.

    Use as a context manager, or call ``reset``, so that every preview file
    is released when the upload form goes away.
    """

    def __init__(self, previews: PreviewRegistry | None = None, max_bytes: int | None = None) -> None:
        self.previews = previews or PreviewRegistry()
        self.max_bytes = max_bytes or get_max_batch_bytes()
        self._files: list[StagedFile] = []

    @property
    def files(self) -> list[StagedFile]:
        return list(self._files)

    @property
    def total_bytes(self) -> int:
        return sum(f.size for f in self._files)

    def add_files(self, files: Iterable[IncomingFile], source: UploadSource = UploadSource.PICKER) -> list[StagedFile]:
        """
        Stage new files after the existing ones.

        Dropped files that are neither images nor videos are ignored. The
        picker restricts types itself, so its files are taken as given.

        Returns:
            list[StagedFile]: The files that were staged

        Raises:
            ValidationError: If the batch would exceed the size limit; nothing is staged then
        """
        candidates = []
        for incoming in files:
            mime_type = guess_mime_type(incoming.name, incoming.mime_type)
            if UploadSource(source) == UploadSource.DROP and not is_media(mime_type):
                logger.debug("dropped_file_ignored", filename=incoming.name, mime_type=mime_type)
                continue
            candidates.append((incoming, mime_type))

        new_bytes = sum(incoming.size for incoming, _ in candidates)
        if self.total_bytes + new_bytes > self.max_bytes:
            raise ValidationError(
                size_limit_message(self.max_bytes),
                code="batch_too_large",
                details={"staged_bytes": self.total_bytes, "new_bytes": new_bytes, "max_bytes": self.max_bytes},
            )

        staged = []
        for incoming, mime_type in candidates:
            staged_file = StagedFile(
                name=incoming.name,
                data=incoming.data,
                mime_type=mime_type,
                title=default_title(incoming.name),
                preview=self.previews.create(incoming.data, incoming.name),
            )
            self._files.append(staged_file)
            staged.append(staged_file)

        logger.info("files_staged", count=len(staged), source=UploadSource(source).value, total_bytes=self.total_bytes)
        return staged

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._files):
            raise IndexError(f"Staged file index out of range: {index}")

    def move(self, from_index: int, to_index: int) -> None:
        """Take the file at ``from_index`` out and reinsert it at ``to_index``."""
        self._check_index(from_index)
        self._check_index(to_index)
        self._files.insert(to_index, self._files.pop(from_index))

    def remove(self, index: int) -> StagedFile:
        self._check_index(index)
        staged_file = self._files.pop(index)
        self.previews.release(staged_file.preview)
        staged_file.preview = None
        return staged_file

    def set_title(self, index: int, title: str) -> None:
        self._check_index(index)
        self._files[index].title = title

    def set_tags(self, index: int, tags: list[str]) -> None:
        self._check_index(index)
        self._files[index].tags = normalize_tags(tags)

    def reset(self) -> None:
        """Drop every staged file and release all previews."""
        for staged_file in self._files:
            staged_file.preview = None
        self._files.clear()
        self.previews.release_all()

    def __len__(self) -> int:
        return len(self._files)

    def __enter__(self) -> "UploadStage":
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.reset()


@dataclass
class UploadProgress:
    """Snapshot passed to the progress callback after each step."""

    completed: int
    total: int
    current_file: str
    uploaded_bytes: int
    total_bytes: int
    elapsed_seconds: float

    @property
    def percent(self) -> float:
        return self.completed / self.total * 100 if self.total else 100.0

    @property
    def bytes_per_second(self) -> float:
        return self.uploaded_bytes / self.elapsed_seconds if self.elapsed_seconds > 0 else 0.0

    @property
    def remaining_bytes(self) -> int:
        return max(0, self.total_bytes - self.uploaded_bytes)


ProgressCallback = Callable[[UploadProgress], None]


class UploadOrchestrator:
    """
    Turns staged files into stored objects and memory records.

    Args:
        repository: Data-access interface (defaults to the global repository)
        media_processor: Video thumbnail extractor
        max_bytes: Aggregate batch limit (defaults to MAX_BATCH_SIZE_MB)
    """

    def __init__(
        self,
        repository: MemoryRepository | None = None,
        media_processor: MediaProcessor | None = None,
        max_bytes: int | None = None,
    ) -> None:
        self.repository = repository or get_repository()
        self._media_processor = media_processor
        self.max_bytes = max_bytes or get_max_batch_bytes()

    @property
    def media_processor(self) -> MediaProcessor:
        if self._media_processor is None:
            self._media_processor = get_media_processor()
        return self._media_processor

    def validate(self, stage: UploadStage, mode: UploadMode, album_title: str | None = None) -> None:
        """
        Check a batch before any backend call.

        Raises:
            ValidationError: With a message meant for the upload form
        """
        files = stage.files
        if not files:
            raise ValidationError(EMPTY_SELECTION_MESSAGE, code="no_files")

        if stage.total_bytes > self.max_bytes:
            raise ValidationError(
                size_limit_message(self.max_bytes),
                code="batch_too_large",
                details={"total_bytes": stage.total_bytes, "max_bytes": self.max_bytes},
            )

        if UploadMode(mode) == UploadMode.ALBUM:
            if sum(1 for f in files if f.is_image) < 2:
                raise ValidationError(ALBUM_TOO_SMALL_MESSAGE, code="album_too_small")
            if not (album_title or "").strip():
                raise ValidationError(MISSING_ALBUM_TITLE_MESSAGE, code="album_title_missing")
        elif any(not f.title.strip() for f in files):
            raise ValidationError(MISSING_TITLES_MESSAGE, code="titles_missing")

    def submit(
        self,
        stage: UploadStage,
        mode: UploadMode,
        album_title: str | None = None,
        album_tags: list[str] | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> list[MemoryRecord]:
        """
        Validate and upload the staged batch, then clear the stage.

        Previews are released whether the upload succeeds or fails.

        Raises:
            ValidationError: If the batch is rejected locally
            UploadError: If the batch stopped part-way
        """
        self.validate(stage, mode, album_title)
        try:
            if UploadMode(mode) == UploadMode.ALBUM:
                return [self.upload_album(stage.files, album_title or "", album_tags, progress_callback)]
            return self.upload_files(stage.files, progress_callback)
        finally:
            stage.reset()

    def upload_album(
        self,
        files: list[StagedFile],
        title: str,
        tags: list[str] | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> MemoryRecord:
        """
        Upload the images of a batch as one album record.

        The first image becomes the cover and the record ``src``. Non-image
        files are skipped. The record is written only after every photo is
        stored.
        """
        images = [f for f in files if f.is_image]
        skipped = len(files) - len(images)
        if skipped:
            logger.warning("album_non_images_skipped", count=skipped)

        start = time.perf_counter()
        tracker = _ProgressTracker(images, progress_callback)
        logger.info("album_upload_started", photos=len(images), total_bytes=tracker.total_bytes)

        album_photos: list[AlbumPhoto] = []
        current = images[0].name if images else ""
        try:
            for staged_file in images:
                current = staged_file.name
                path = self.repository.upload_object(_object_key(staged_file), staged_file.data, staged_file.mime_type)
                album_photos.append(AlbumPhoto(src=self.repository.get_public_url(path)))
                tracker.advance(staged_file)

            record = MemoryRecord.create_new(
                type=MediaType.PHOTO,
                title=title,
                src=album_photos[0].src,
                tags=tags or [],
                album_photos=album_photos,
            )
            self.repository.insert_record(record)
        except Exception as e:
            raise _batch_failure(e, current, written=[]) from e

        log_user_action("anonymous", "album_uploaded", record_id=record.id, photos=len(album_photos))
        log_performance("upload_album", time.perf_counter() - start, photos=len(album_photos))
        return record

    def upload_files(
        self, files: list[StagedFile], progress_callback: ProgressCallback | None = None
    ) -> list[MemoryRecord]:
        """Upload each file as its own record, in order."""
        start = time.perf_counter()
        tracker = _ProgressTracker(files, progress_callback)
        logger.info("batch_upload_started", total_files=len(files), total_bytes=tracker.total_bytes)

        written: list[MemoryRecord] = []
        for staged_file in files:
            try:
                written.append(self._upload_one(staged_file))
            except Exception as e:
                raise _batch_failure(e, staged_file.name, written) from e
            tracker.advance(staged_file)

        logger.info("batch_upload_completed", total_files=len(files), records_written=len(written))
        log_performance("upload_files", time.perf_counter() - start, total_files=len(files))
        return written

    def _upload_one(self, staged_file: StagedFile) -> MemoryRecord:
        media_type = media_type_for(staged_file.mime_type)
        path = self.repository.upload_object(_object_key(staged_file), staged_file.data, staged_file.mime_type)

        if media_type is MediaType.VIDEO:
            probe = self.media_processor.probe_video(staged_file.data, staged_file.name)
            thumb_path = self.repository.upload_object(f"{uuid.uuid4()}_thumb.jpg", probe.thumbnail, "image/jpeg")
            record = MemoryRecord.create_new(
                type=MediaType.VIDEO,
                title=staged_file.title,
                src=path,
                thumbnail=self.repository.get_public_url(thumb_path),
                tags=staged_file.tags,
                duration=probe.duration,
            )
        else:
            record = MemoryRecord.create_new(
                type=MediaType.PHOTO,
                title=staged_file.title,
                src=self.repository.get_public_url(path),
                tags=staged_file.tags,
            )

        self.repository.insert_record(record)
        logger.info("memory_uploaded", record_id=record.id, type=record.type.value, filename=staged_file.name)
        return record


class _ProgressTracker:
    def __init__(self, files: list[StagedFile], callback: ProgressCallback | None) -> None:
        self.total = len(files)
        self.total_bytes = sum(f.size for f in files)
        self.callback = callback
        self.completed = 0
        self.uploaded_bytes = 0
        self.started = time.perf_counter()

    def advance(self, staged_file: StagedFile) -> None:
        self.completed += 1
        self.uploaded_bytes += staged_file.size
        if self.callback is None:
            return
        self.callback(
            UploadProgress(
                completed=self.completed,
                total=self.total,
                current_file=staged_file.name,
                uploaded_bytes=self.uploaded_bytes,
                total_bytes=self.total_bytes,
                elapsed_seconds=time.perf_counter() - self.started,
            )
        )


def _object_key(staged_file: StagedFile) -> str:
    return f"{uuid.uuid4()}{staged_file.extension}"


def _batch_failure(error: Exception, filename: str, written: list[MemoryRecord]) -> UploadError:
    error = get_error_handler().classify(error, {"operation": "upload", "filename": filename})
    logger.error(
        "upload_batch_failed",
        filename=filename,
        error_code=error.code,
        records_written=len(written),
    )
    return UploadError(
        f"Upload stopped at '{filename}': {error}",
        details={"filename": filename, "cause": error.code},
        written_records=written,
        original_exception=error,
    )
