"""Admin page for memoire application."""

import streamlit as st

from ...error_handling import MemoireError
from ...logging_config import get_logger
from ...models.memory import MemoryRecord
from ...services.admin import split_by_type
from ...services.auth import INVALID_ADMIN_CREDENTIALS
from ..components.admin import render_admin_sign_in, render_delete_control, render_tag_editor
from ..components.common import render_empty_state, render_exception
from ..handlers.auth import get_session, sign_out
from ..handlers.gallery import get_records

logger = get_logger(__name__)


def _render_media_list(records: list[MemoryRecord], key_prefix: str) -> None:
    for record in records:
        with st.container(border=True):
            col1, col2, col3 = st.columns([1, 3, 1])
            with col1:
                st.image(record.cover, use_container_width=True)
            with col2:
                st.markdown(f"**{record.title}**")
                st.caption(record.date.strftime("%Y-%m-%d"))
                render_tag_editor(record, key_prefix=key_prefix)
            with col3:
                render_delete_control(record, key_prefix=key_prefix)


def render_admin_page() -> None:
    """Sign-in form for visitors, media management for admins."""
    session = get_session()

    if session is None:
        render_admin_sign_in()
        return

    col1, col2 = st.columns([3, 1])
    with col1:
        st.markdown(f"### 🛡️ Admin · {session.email}")
    with col2:
        if st.button("Sign out", use_container_width=True):
            sign_out()
            st.rerun()

    if not session.is_admin:
        st.error(INVALID_ADMIN_CREDENTIALS)
        return

    try:
        records = get_records()
    except MemoireError as e:
        logger.error("admin_load_failed", error=str(e))
        render_exception(e)
        return

    photos, videos = split_by_type(records)
    photo_tab, video_tab = st.tabs([f"Photos ({len(photos)})", f"Videos ({len(videos)})"])

    with photo_tab:
        if photos:
            _render_media_list(photos, "admin_photos")
        else:
            render_empty_state(title="No photos", description="Uploaded photos will appear here.", icon="🖼️")

    with video_tab:
        if videos:
            _render_media_list(videos, "admin_videos")
        else:
            render_empty_state(title="No videos", description="Uploaded videos will appear here.", icon="🎬")
