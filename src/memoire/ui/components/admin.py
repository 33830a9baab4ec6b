"""Admin components for memoire application."""

import streamlit as st

from ...error_handling import MemoireError
from ...logging_config import get_logger
from ...models.memory import MemoryRecord
from ...services.admin import DELETE_CONFIRMATION_PROMPT, get_delete_service
from ..handlers.auth import get_session, is_admin_session, try_sign_in
from ..handlers.gallery import list_known_tags, refresh_gallery
from .common import render_exception

logger = get_logger(__name__)


def render_delete_control(record: MemoryRecord, key_prefix: str = "admin") -> None:
    """
    Delete button with a confirmation step.

    Renders nothing at all for non-admin sessions.
    """
    if not is_admin_session():
        return

    pending_key = f"pending_delete_{key_prefix}"
    if st.session_state.get(pending_key) != record.id:
        if st.button("🗑️ Delete", key=f"{key_prefix}_delete_{record.id}", use_container_width=True):
            st.session_state[pending_key] = record.id
            st.rerun()
        return

    st.warning(DELETE_CONFIRMATION_PROMPT)
    col1, col2 = st.columns(2)
    with col1:
        confirmed = st.button("Delete", key=f"{key_prefix}_confirm_{record.id}", type="primary")
    with col2:
        cancelled = st.button("Cancel", key=f"{key_prefix}_cancel_{record.id}")

    if cancelled:
        st.session_state.pop(pending_key, None)
        st.rerun()
    if confirmed:
        st.session_state.pop(pending_key, None)
        try:
            get_delete_service().delete(get_session(), record, confirmed=True)
        except MemoireError as e:
            render_exception(e)
            return
        refresh_gallery()
        st.rerun()


def render_tag_editor(record: MemoryRecord, key_prefix: str = "admin") -> None:
    """Admin-only multiselect over known tags plus a field for new ones."""
    if not is_admin_session():
        return

    rerun_counter = st.session_state.get("gallery_rerun_counter", 0)
    options = sorted(set(list_known_tags(rerun_counter)) | set(record.tags), key=str.lower)

    with st.form(f"{key_prefix}_tags_{record.id}"):
        selected = st.multiselect("Tags", options, default=record.tags)
        new_tags = st.text_input("New tags (comma separated)")
        submitted = st.form_submit_button("Save tags")

    if submitted:
        tags = selected + [tag for tag in new_tags.split(",") if tag.strip()]
        try:
            get_delete_service().update_tags(get_session(), record.id, tags)
        except MemoireError as e:
            render_exception(e)
            return
        refresh_gallery()
        st.rerun()


def render_admin_sign_in() -> None:
    """Email and password form for admins."""
    st.markdown("### 🔐 Admin sign-in")
    with st.form("admin_sign_in"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        error_message = try_sign_in(email, password)
        if error_message:
            st.error(error_message)
            return
        logger.info("admin_sign_in_form_success", email=email)
        st.rerun()
