"""Upload form components for memoire application."""

from typing import Any

import streamlit as st

from ...logging_config import get_logger
from ...services.upload import UploadMode, UploadProgress, UploadStage, format_file_size

logger = get_logger(__name__)

PICKER_TYPES = ["jpg", "jpeg", "png", "gif", "webp", "heic", "heif", "mp4", "mov", "m4v", "webm"]


def render_mode_selector() -> UploadMode:
    """Single files or one album."""
    choice = st.radio(
        "Upload as",
        ["Individual memories", "One album"],
        horizontal=True,
        key="upload_mode_choice",
    )
    return UploadMode.ALBUM if choice == "One album" else UploadMode.SINGLE


def render_file_sources(max_size_mb: int) -> tuple[list[Any], list[Any]]:
    """
    Render the picker and the drop zone.

    Returns:
        tuple: (picked files, dropped files)
    """
    generation = st.session_state.get("uploader_generation", 0)
    col1, col2 = st.columns(2)
    with col1:
        picked = st.file_uploader(
            "Choose photos and videos",
            type=PICKER_TYPES,
            accept_multiple_files=True,
            key=f"picker_{generation}",
            help=f"Up to {max_size_mb} MB per batch",
        )
    with col2:
        dropped = st.file_uploader(
            "Or drop files here",
            accept_multiple_files=True,
            key=f"drop_{generation}",
            help="Files that are not photos or videos are ignored",
        )
    return picked or [], dropped or []


def render_staged_files(stage: UploadStage, mode: UploadMode, known_tags: list[str]) -> None:
    """Preview, order, title and tag the staged files."""
    files = stage.files
    st.markdown(f"**{len(files)} file(s) selected · {format_file_size(stage.total_bytes)}**")

    for index, staged_file in enumerate(files):
        key = f"staged_{id(staged_file)}"
        with st.container(border=True):
            col1, col2, col3 = st.columns([1, 3, 1])

            with col1:
                if staged_file.preview:
                    if staged_file.is_video:
                        st.video(staged_file.preview)
                    else:
                        st.image(staged_file.preview, use_container_width=True)

            with col2:
                st.caption(f"{staged_file.name} · {format_file_size(staged_file.size)}")
                if mode == UploadMode.SINGLE:
                    title = st.text_input("Title", value=staged_file.title, key=f"{key}_title", placeholder="Enter title")
                    if title != staged_file.title:
                        stage.set_title(index, title)

                    options = sorted(set(known_tags) | set(staged_file.tags), key=str.lower)
                    tags = st.multiselect("Tags", options, default=staged_file.tags, key=f"{key}_tags")
                    new_tag = st.text_input("Add tag", key=f"{key}_new_tag", placeholder="New tag")
                    if new_tag.strip():
                        tags = tags + [new_tag]
                    if tags != staged_file.tags:
                        stage.set_tags(index, tags)

            with col3:
                if st.button("⬆️", key=f"{key}_up", disabled=index == 0):
                    stage.move(index, index - 1)
                    st.rerun()
                if st.button("⬇️", key=f"{key}_down", disabled=index == len(files) - 1):
                    stage.move(index, index + 1)
                    st.rerun()
                if st.button("✖️", key=f"{key}_remove"):
                    stage.remove(index)
                    st.rerun()


def render_upload_progress(placeholder: Any, progress: UploadProgress) -> None:
    """Progress bar with speed and remaining size."""
    with placeholder.container():
        st.progress(
            min(progress.percent / 100, 1.0),
            text=f"{progress.completed} / {progress.total} · {progress.current_file}",
        )
        st.caption(
            f"{format_file_size(progress.bytes_per_second)}/s · {format_file_size(progress.remaining_bytes)} remaining"
        )
