"""Upload page for memoire application."""

import streamlit as st

from ...config import MIB, get_max_batch_bytes
from ...error_handling import UploadError, ValidationError
from ...logging_config import get_logger
from ...services.upload import UploadMode, UploadProgress, UploadSource
from ..components.common import render_empty_state, render_exception
from ..components.upload import render_file_sources, render_mode_selector, render_staged_files, render_upload_progress
from ..handlers.gallery import list_known_tags
from ..handlers.upload import clear_upload_session_state, execute_upload, get_upload_stage, stage_uploaded_files

logger = get_logger(__name__)


def _initialize_session_state() -> None:
    if "upload_in_progress" not in st.session_state:
        st.session_state.upload_in_progress = False


def _render_album_fields(known_tags: list[str]) -> tuple[str, list[str]]:
    album_title = st.text_input("Album title", key="album_title", placeholder="Enter album title")
    album_tags = st.multiselect("Album tags", known_tags, key="album_tags")
    new_tag = st.text_input("Add album tag", key="album_new_tag", placeholder="New tag")
    if new_tag.strip():
        album_tags = album_tags + [new_tag]
    return album_title, album_tags


def _execute_upload(mode: UploadMode, album_title: str | None, album_tags: list[str] | None) -> None:
    st.session_state.upload_in_progress = True
    placeholder = st.empty()

    def progress_callback(progress: UploadProgress) -> None:
        render_upload_progress(placeholder, progress)

    try:
        records = execute_upload(mode, album_title, album_tags, progress_callback)
    except ValidationError as e:
        render_exception(e)
        return
    except UploadError as e:
        if e.written_records:
            st.info(f"{len(e.written_records)} memory(ies) were saved before the error.")
        render_exception(e)
        return
    finally:
        st.session_state.upload_in_progress = False
        placeholder.empty()

    st.toast(f"Uploaded {len(records)} memory(ies).")
    st.session_state.next_page = "gallery"
    st.rerun()


def render_upload_page() -> None:
    """Render the upload form: sources, staged files, mode and submit."""
    _initialize_session_state()
    max_size_mb = get_max_batch_bytes() // MIB

    st.markdown("### 📤 Add memories")
    mode = render_mode_selector()
    picked, dropped = render_file_sources(max_size_mb)

    for files, source in ((picked, UploadSource.PICKER), (dropped, UploadSource.DROP)):
        error_message = stage_uploaded_files(files, source)
        if error_message:
            st.warning(error_message)

    stage = get_upload_stage()
    if not len(stage):
        render_empty_state(
            title="No files selected",
            description=f"Choose photos or videos, up to {max_size_mb} MB per upload.",
            icon="📁",
        )
        return

    rerun_counter = st.session_state.get("gallery_rerun_counter", 0)
    known_tags = list_known_tags(rerun_counter)

    album_title, album_tags = None, None
    if mode == UploadMode.ALBUM:
        album_title, album_tags = _render_album_fields(known_tags)

    render_staged_files(stage, mode, known_tags)

    st.divider()
    col1, col2 = st.columns([3, 1])
    with col1:
        if st.button(
            "🚀 Upload",
            type="primary",
            use_container_width=True,
            disabled=st.session_state.upload_in_progress,
        ):
            _execute_upload(mode, album_title, album_tags)
    with col2:
        if st.button("Cancel", use_container_width=True):
            clear_upload_session_state()
            st.rerun()
