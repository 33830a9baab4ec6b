"""Temporary preview files for staged uploads."""

import os
import tempfile
import threading
from pathlib import Path

from ..logging_config import get_logger

logger = get_logger(__name__)


class PreviewRegistry:
    """
    Owns the temporary files shown by the upload preview widgets.

    A handle is the path of a temp file. Every handle has to be released
    once, through ``release`` or ``release_all``.
    """

    def __init__(self, directory: str | None = None) -> None:
        self.directory = directory
        self._handles: set[str] = set()
        self._lock = threading.Lock()

    def create(self, data: bytes, filename: str) -> str:
        """Write ``data`` to a temp file and return its handle."""
        suffix = Path(filename).suffix.lower()
        fd, path = tempfile.mkstemp(suffix=suffix, prefix="memoire-preview-", dir=self.directory)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)

        with self._lock:
            self._handles.add(path)
        logger.debug("preview_created", handle=path, size=len(data))
        return path

    def release(self, handle: str | None) -> bool:
        """
        Delete the file behind ``handle``.

        Returns:
            bool: False for unknown or already released handles
        """
        if handle is None:
            return False
        with self._lock:
            if handle not in self._handles:
                return False
            self._handles.discard(handle)

        Path(handle).unlink(missing_ok=True)
        logger.debug("preview_released", handle=handle)
        return True

    def release_all(self) -> int:
        """Release every live handle. Returns how many were released."""
        with self._lock:
            handles = list(self._handles)
            self._handles.clear()

        for handle in handles:
            Path(handle).unlink(missing_ok=True)
        if handles:
            logger.debug("previews_released", count=len(handles))
        return len(handles)

    @property
    def live_handles(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._handles)

    def __len__(self) -> int:
        return len(self.live_handles)
