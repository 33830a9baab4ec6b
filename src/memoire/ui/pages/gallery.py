"""Gallery page for memoire application."""

import streamlit as st

from ...error_handling import MemoireError
from ...logging_config import get_logger
from ..components.common import render_empty_state, render_exception
from ..components.gallery import render_hero_carousel, render_memory_grid
from ..components.timeline import render_timeline
from ..handlers.auth import is_admin_session
from ..handlers.gallery import get_filtered_records, get_records, get_viewer

logger = get_logger(__name__)

VIEW_MODES = {"Grid": "grid", "Timeline": "timeline"}


def render_gallery_page() -> None:
    """Render the hero, search, and the grid or timeline of memories."""
    # Full reruns never happen while the dialog is in use, so an open viewer here is stale
    get_viewer().close()

    try:
        records = get_records()
    except MemoireError as e:
        logger.error("gallery_load_failed", error=str(e))
        render_exception(e)
        return

    if not records:
        render_empty_state(
            title="No memories yet",
            description="Add your first memory to start the gallery.",
            icon="📷",
            action_text="Add your first memory",
            action_page="upload",
        )
        return

    render_hero_carousel(records)
    st.divider()

    col1, col2 = st.columns([3, 1])
    with col1:
        query = st.text_input("Search", key="gallery_query", placeholder="Search memories by title")
    with col2:
        view_label = st.radio("View", list(VIEW_MODES), horizontal=True, key="gallery_view")

    filtered = get_filtered_records(records, query or "")
    if not filtered:
        render_empty_state(
            title="No results",
            description=f"No memories match “{query.strip()}”.",
            icon="🔍",
        )
        return

    is_admin = is_admin_session()
    if VIEW_MODES[view_label] == "timeline":
        render_timeline(filtered, is_admin=is_admin)
    else:
        render_memory_grid(filtered, is_admin=is_admin)
