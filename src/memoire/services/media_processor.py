"""Media processing service for memoire application."""

import io
import mimetypes
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path

import cv2
from PIL import Image

from ..config import get_thumbnail_settings
from ..error_handling import MediaProcessingError
from ..logging_config import get_logger, log_error, log_performance
from ..models.memory import MediaType, format_duration

logger = get_logger(__name__)

THUMBNAIL_SEEK_SECONDS = 1.0


def guess_mime_type(filename: str, declared: str | None = None) -> str:
    """Use the declared MIME type, falling back to the filename extension."""
    if declared and declared != "application/octet-stream":
        return declared.lower()
    guessed, _ = mimetypes.guess_type(filename)
    return (guessed or "application/octet-stream").lower()


def is_image(mime_type: str) -> bool:
    return mime_type.lower().startswith("image/")


def is_video(mime_type: str) -> bool:
    return mime_type.lower().startswith("video/")


def is_media(mime_type: str) -> bool:
    return is_image(mime_type) or is_video(mime_type)


def media_type_for(mime_type: str) -> MediaType:
    """
    Map a MIME type to a record media type.

    Raises:
        MediaProcessingError: For anything that is neither image nor video
    """
    if is_image(mime_type):
        return MediaType.PHOTO
    if is_video(mime_type):
        return MediaType.VIDEO
    raise MediaProcessingError(f"Unsupported media type: {mime_type}", code="unsupported_media_type")


@dataclass
class VideoProbe:
    """Result of inspecting a video clip."""

    thumbnail: bytes
    duration_seconds: float
    width: int
    height: int

    @property
    def duration(self) -> str:
        return format_duration(self.duration_seconds)


class MediaProcessor:
    """Extracts thumbnails and durations from uploaded videos."""

    def __init__(self, max_size: tuple[int, int] | None = None, quality: int | None = None) -> None:
        width, height, default_quality = get_thumbnail_settings()
        self.max_size = max_size or (width, height)
        self.quality = quality or default_quality

    def probe_video(self, video_data: bytes, filename: str = "video.mp4") -> VideoProbe:
        """
        Decode a video and grab a representative frame.

        The frame is taken at one second in, or at a quarter of the clip for
        clips shorter than that, and fitted inside ``max_size``.

        Args:
            video_data: Raw video bytes
            filename: Original name, its suffix helps the decoder

        Returns:
            VideoProbe: JPEG thumbnail bytes and clip metadata

        Raises:
            MediaProcessingError: If the video cannot be decoded
        """
        start = time.perf_counter()
        suffix = Path(filename).suffix or ".mp4"

        # VideoCapture only reads from a path
        fd, temp_path = tempfile.mkstemp(suffix=suffix, prefix="memoire-video-")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(video_data)

            capture = cv2.VideoCapture(temp_path)
            try:
                if not capture.isOpened():
                    raise MediaProcessingError(
                        f"Could not open video '{filename}'",
                        code="video_open_failed",
                        details={"filename": filename, "size": len(video_data)},
                    )

                frame_count = capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0
                fps = capture.get(cv2.CAP_PROP_FPS) or 0
                duration = frame_count / fps if fps > 0 else 0.0

                seek_seconds = THUMBNAIL_SEEK_SECONDS if duration > THUMBNAIL_SEEK_SECONDS else duration * 0.25
                capture.set(cv2.CAP_PROP_POS_MSEC, seek_seconds * 1000)
                ok, frame = capture.read()
                if not ok:
                    capture.set(cv2.CAP_PROP_POS_FRAMES, 0)
                    ok, frame = capture.read()
                if not ok or frame is None:
                    raise MediaProcessingError(
                        f"Could not read a frame from video '{filename}'",
                        code="video_frame_failed",
                        details={"filename": filename, "duration": duration},
                    )
            finally:
                capture.release()
        finally:
            Path(temp_path).unlink(missing_ok=True)

        thumbnail, size = self._encode_frame(frame)
        log_performance(
            "probe_video",
            time.perf_counter() - start,
            filename=filename,
            video_size=len(video_data),
            thumbnail_size=len(thumbnail),
            clip_seconds=round(duration, 2),
        )
        return VideoProbe(thumbnail=thumbnail, duration_seconds=duration, width=size[0], height=size[1])

    def _encode_frame(self, frame) -> tuple[bytes, tuple[int, int]]:
        try:
            # OpenCV frames are BGR
            image = Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))
            original_size = image.size
            image.thumbnail(self.max_size, Image.Resampling.LANCZOS)

            buffer = io.BytesIO()
            image.save(buffer, format="JPEG", quality=self.quality, optimize=True)
            return buffer.getvalue(), original_size
        except (cv2.error, OSError, ValueError) as e:
            log_error(e, {"operation": "encode_video_frame", "max_size": self.max_size})
            raise MediaProcessingError(
                f"Failed to encode video thumbnail: {e}",
                code="thumbnail_generation_failed",
                original_exception=e,
            ) from e


_media_processor: MediaProcessor | None = None


def get_media_processor() -> MediaProcessor:
    """Get the global media processor instance."""
    global _media_processor
    if _media_processor is None:
        _media_processor = MediaProcessor()
    return _media_processor
