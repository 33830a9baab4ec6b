"""Full-screen media viewer state for memoire application."""

from collections.abc import Callable

from ..logging_config import get_logger
from ..models.memory import MemoryRecord
from .gallery import adjacent_record

logger = get_logger(__name__)


class ViewerState:
    """
    What the open viewer shows.

    The album index goes back to 0 whenever the record changes. ``loading``
    is raised on every record or album index change and cleared by
    ``mark_loaded`` once the media has rendered.
    """

    def __init__(self) -> None:
        self.record: MemoryRecord | None = None
        self.direction: str | None = None
        self.album_index = 0
        self.loading = False

    @property
    def is_open(self) -> bool:
        return self.record is not None

    @property
    def album_size(self) -> int:
        if self.record is None or not self.record.is_album:
            return 0
        return len(self.record.album_photos or [])

    def open(self, record: MemoryRecord, direction: str | None = None) -> None:
        changed = self.record is None or self.record.id != record.id
        self.record = record
        self.direction = direction
        if changed:
            self.album_index = 0
            self.loading = True
        logger.debug("viewer_opened", record_id=record.id, direction=direction)

    def next_photo(self) -> None:
        self._step_album(1)

    def previous_photo(self) -> None:
        self._step_album(-1)

    def _step_album(self, offset: int) -> None:
        total = self.album_size
        if total == 0:
            return
        self._set_album_index((self.album_index + offset + total) % total)

    def select_photo(self, index: int) -> None:
        if not 0 <= index < self.album_size:
            raise IndexError(f"Album photo index out of range: {index}")
        self._set_album_index(index)

    def _set_album_index(self, index: int) -> None:
        if index != self.album_index:
            self.album_index = index
            self.loading = True

    def navigate(self, direction: str, records: list[MemoryRecord]) -> bool:
        """
        Move to the neighbouring record of the current list.

        Albums page through their own photos instead. Nothing changes at
        either end of the list.

        Returns:
            bool: True if another record is now shown
        """
        if self.record is None or self.record.is_album:
            return False

        neighbour = adjacent_record(records, self.record.id, direction)
        if neighbour is None:
            return False

        self.open(neighbour, direction)
        return True

    def mark_loaded(self) -> None:
        self.loading = False

    def media_url(self, resolve_public_url: Callable[[str], str]) -> str | None:
        """
        URL of what is on screen.

        Videos store a storage path and go through ``resolve_public_url``.
        """
        if self.record is None:
            return None
        if self.record.is_video:
            return resolve_public_url(self.record.src)
        if self.album_size:
            return self.record.album_photos[self.album_index].src  # type: ignore[index]
        return self.record.src

    def close(self) -> None:
        if self.record is not None:
            logger.debug("viewer_closed", record_id=self.record.id)
        self.record = None
        self.direction = None
        self.album_index = 0
        self.loading = False
