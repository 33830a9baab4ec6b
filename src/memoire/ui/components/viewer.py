"""Media viewer dialog for memoire application."""

import streamlit as st

from ...error_handling import MemoireError
from ...logging_config import get_logger
from ...models.memory import MemoryRecord
from ..handlers.gallery import get_viewer, resolve_public_url

logger = get_logger(__name__)

VIDEO_ERROR_MESSAGE = "Error playing video. Please try again."


@st.dialog("Memory", width="large")
def show_viewer_dialog(records: list[MemoryRecord]) -> None:
    """
    Full-screen viewer over ``records``.

    Button clicks inside the dialog only rerun the dialog. Closing it with
    its close control or Escape ends the dialog; the next full run of the
    gallery page calls ``ViewerState.close``.
    """
    viewer = get_viewer()
    record = viewer.record
    if record is None:
        return

    _render_media(record)

    if viewer.album_size:
        _render_album_controls()
    else:
        _render_record_controls(records)

    st.markdown(f"### {record.title}")
    caption = record.date.strftime("%B %d, %Y")
    if record.duration:
        caption += f" · {record.duration}"
    st.caption(caption)
    if record.tags:
        st.caption(" ".join(f"#{tag}" for tag in record.tags))

    if st.button("Close", key="viewer_close", use_container_width=True):
        viewer.close()
        st.rerun()


def _render_media(record: MemoryRecord) -> None:
    viewer = get_viewer()
    try:
        url = viewer.media_url(resolve_public_url)
    except MemoireError as e:
        logger.warning("viewer_media_url_failed", record_id=record.id, error=str(e))
        st.error(VIDEO_ERROR_MESSAGE if record.is_video else e.user_message)
        return

    with st.spinner("Loading..."):
        if record.is_video:
            st.video(url, autoplay=True)
        else:
            st.image(url, caption=record.title, use_container_width=True)
    viewer.mark_loaded()


def _render_album_controls() -> None:
    viewer = get_viewer()
    col1, col2, col3 = st.columns([1, 4, 1])
    with col1:
        if st.button("◀", key="album_prev", use_container_width=True):
            viewer.previous_photo()
            st.rerun(scope="fragment")
    with col2:
        st.caption(f"{viewer.album_index + 1} / {viewer.album_size}")
    with col3:
        if st.button("▶", key="album_next", use_container_width=True):
            viewer.next_photo()
            st.rerun(scope="fragment")

    # Thumbnail strip
    photos = viewer.record.album_photos or []  # type: ignore[union-attr]
    strip = st.columns(min(len(photos), 8))
    for index, photo in enumerate(photos[: len(strip)]):
        with strip[index]:
            st.image(photo.src, use_container_width=True)
            if st.button("•" if index == viewer.album_index else "○", key=f"album_photo_{index}"):
                viewer.select_photo(index)
                st.rerun(scope="fragment")


def _render_record_controls(records: list[MemoryRecord]) -> None:
    viewer = get_viewer()
    col1, col2 = st.columns(2)
    with col1:
        if st.button("◀ Previous", key="viewer_left", use_container_width=True):
            if viewer.navigate("left", records):
                st.rerun(scope="fragment")
    with col2:
        if st.button("Next ▶", key="viewer_right", use_container_width=True):
            if viewer.navigate("right", records):
                st.rerun(scope="fragment")
