"""Upload handlers for memoire application."""

from typing import Any

import streamlit as st

from ...error_handling import UploadError, ValidationError
from ...logging_config import get_logger
from ...models.memory import MemoryRecord
from ...services.upload import (
    IncomingFile,
    ProgressCallback,
    UploadMode,
    UploadOrchestrator,
    UploadSource,
    UploadStage,
)
from .gallery import refresh_gallery

logger = get_logger(__name__)


def get_upload_stage() -> UploadStage:
    """The staging area of this browser session."""
    if "upload_stage" not in st.session_state:
        st.session_state.upload_stage = UploadStage()
    return st.session_state.upload_stage


def _file_key(uploaded_file: Any) -> str:
    return str(getattr(uploaded_file, "file_id", None) or f"{uploaded_file.name}:{uploaded_file.size}")


def stage_uploaded_files(uploaded_files: list[Any], source: UploadSource = UploadSource.PICKER) -> str | None:
    """
    Stage files from a Streamlit uploader that were not staged yet.

    Streamlit hands back the whole selection on every rerun, so files are
    remembered by their uploader ID.

    Returns:
        str | None: Validation message if the files were rejected
    """
    seen: set[str] = st.session_state.setdefault("staged_upload_keys", set())
    fresh = [f for f in uploaded_files or [] if _file_key(f) not in seen]
    if not fresh:
        return None

    incoming = [IncomingFile(name=f.name, data=f.getvalue(), mime_type=f.type) for f in fresh]
    try:
        get_upload_stage().add_files(incoming, source)
    except ValidationError as e:
        return e.user_message
    finally:
        # Rejected files are not offered again until the selection changes
        seen.update(_file_key(f) for f in fresh)
    return None


def execute_upload(
    mode: UploadMode,
    album_title: str | None = None,
    album_tags: list[str] | None = None,
    progress_callback: ProgressCallback | None = None,
) -> list[MemoryRecord]:
    """
    Upload the staged batch.

    The gallery is refreshed whenever at least one record was written,
    including after a partial failure.

    Raises:
        ValidationError: If the batch is rejected locally (stage kept)
        UploadError: If the batch stopped part-way (stage cleared)
    """
    stage = get_upload_stage()
    orchestrator = UploadOrchestrator()
    try:
        records = orchestrator.submit(stage, mode, album_title, album_tags, progress_callback)
    except UploadError as e:
        if e.written_records:
            refresh_gallery()
        _forget_uploader_selection()
        raise

    refresh_gallery()
    _forget_uploader_selection()
    st.session_state.last_upload_count = len(records)
    logger.info("upload_finished", mode=UploadMode(mode).value, records=len(records))
    return records


def _forget_uploader_selection() -> None:
    st.session_state.staged_upload_keys = set()
    # A new key gives a fresh, empty uploader widget
    st.session_state.uploader_generation = st.session_state.get("uploader_generation", 0) + 1


def clear_upload_session_state() -> None:
    """Release previews and forget the current selection."""
    stage = st.session_state.get("upload_stage")
    if stage is not None:
        stage.reset()
    _forget_uploader_selection()
    st.session_state.pop("last_upload_count", None)
    logger.debug("upload_session_state_cleared")
