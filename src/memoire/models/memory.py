"""
Memory record model for memoire application.

A memory is one gallery entry: a single photo, a video with its thumbnail,
or an album of photos whose cover is the first album photo.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any


class MediaType(str, Enum):
    """Kind of media a record points at."""

    PHOTO = "photo"
    VIDEO = "video"


@dataclass(frozen=True)
class AlbumPhoto:
    """One photo inside an album."""

    src: str

    def to_dict(self) -> dict:
        return {"src": self.src}


@dataclass
class MemoryRecord:
    """
    Represents one memory stored in the record store.

    For photos ``src`` is a public URL. For videos ``src`` is the storage
    path and needs resolving to a public URL before playback, while
    ``thumbnail`` is already public.
    """

    id: str
    type: MediaType
    title: str
    src: str
    date: datetime
    thumbnail: str | None = None
    tags: list[str] = field(default_factory=list)
    album_photos: list[AlbumPhoto] | None = None
    duration: str | None = None
    created_at: datetime | None = None

    @classmethod
    def create_new(
        cls,
        type: MediaType,
        title: str,
        src: str,
        thumbnail: str | None = None,
        tags: list[str] | None = None,
        album_photos: list[AlbumPhoto] | None = None,
        duration: str | None = None,
        date: datetime | None = None,
    ) -> "MemoryRecord":
        """
        Create a new MemoryRecord with generated ID and current timestamps.

        Args:
            type: Media type of the record
            title: Display title
            src: Public URL (photo) or storage path (video)
            thumbnail: Public thumbnail URL, required for videos
            tags: Free-text labels
            album_photos: Ordered album photos, first one is the cover
            duration: Video length as ``m:ss``
            date: Memory date (defaults to now)

        Returns:
            New MemoryRecord instance
        """
        now = datetime.now(UTC)
        return cls(
            id=str(uuid.uuid4()),
            type=MediaType(type),
            title=title.strip(),
            src=src,
            thumbnail=thumbnail,
            tags=normalize_tags(tags or []),
            album_photos=list(album_photos) if album_photos else None,
            duration=duration,
            date=date or now,
            created_at=now,
        )

    @property
    def is_album(self) -> bool:
        """True when the record carries more than one album photo."""
        return bool(self.album_photos) and len(self.album_photos) > 1

    @property
    def is_video(self) -> bool:
        return self.type == MediaType.VIDEO

    @property
    def cover(self) -> str:
        """URL shown on gallery cards."""
        if self.is_video and self.thumbnail:
            return self.thumbnail
        return self.src

    def storage_paths(self) -> list[str]:
        """Every object reference this record owns, in no particular order."""
        refs = [self.src]
        if self.thumbnail:
            refs.append(self.thumbnail)
        for photo in self.album_photos or []:
            refs.append(photo.src)
        return list(dict.fromkeys(refs))

    def to_dict(self) -> dict:
        """
        Convert MemoryRecord to dictionary for database storage.

        Returns:
            Dictionary representation of the record
        """
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "src": self.src,
            "thumbnail": self.thumbnail,
            "date": self.date.isoformat(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "duration": self.duration,
            "tags": list(self.tags),
            "album_photos": [photo.to_dict() for photo in self.album_photos] if self.album_photos else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MemoryRecord":
        """
        Create MemoryRecord from dictionary (e.g., from database).

        ``album_photos`` may arrive as a JSON string, a list of dicts or None.
        """
        album_photos = data.get("album_photos")
        if isinstance(album_photos, str):
            album_photos = json.loads(album_photos)
        if album_photos:
            album_photos = [AlbumPhoto(src=item["src"]) for item in album_photos]
        else:
            album_photos = None

        return cls(
            id=data["id"],
            type=MediaType(data["type"]),
            title=data["title"],
            src=data["src"],
            thumbnail=data.get("thumbnail"),
            date=_parse_datetime(data["date"]),
            created_at=_parse_datetime(data["created_at"]) if data.get("created_at") else None,
            duration=data.get("duration"),
            tags=list(data.get("tags") or []),
            album_photos=album_photos,
        )

    def validate(self) -> list[str]:
        """
        Check the record invariants.

        Returns:
            List of problems, empty when the record is valid
        """
        problems = []

        if not self.id:
            problems.append("id is required")
        if not self.title or not self.title.strip():
            problems.append("title is required")
        if not self.src:
            problems.append("src is required")

        if self.type == MediaType.VIDEO and not self.thumbnail:
            problems.append("video records need a thumbnail")

        if self.album_photos is not None:
            if len(self.album_photos) < 2:
                problems.append("albums need at least two photos")
            elif self.src != self.album_photos[0].src:
                problems.append("album src must be the first album photo")
            if self.type != MediaType.PHOTO:
                problems.append("albums can only contain photos")

        return problems

    def is_valid(self) -> bool:
        return not self.validate()


def normalize_tags(tags: list[str]) -> list[str]:
    """Strip, drop blanks and de-duplicate tags case-insensitively, keeping first spelling."""
    seen: dict[str, str] = {}
    for tag in tags:
        cleaned = " ".join(str(tag).split())
        if cleaned and cleaned.lower() not in seen:
            seen[cleaned.lower()] = cleaned
    return list(seen.values())


def format_duration(seconds: float) -> str:
    """Format a clip length as ``m:ss``."""
    total = max(0, int(seconds))
    return f"{total // 60}:{total % 60:02d}"


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)
