"""
Main Streamlit application for memoire.

This is the entry point for the media gallery web application.
"""

import streamlit as st

from memoire.error_handling import MemoireError
from memoire.logging_config import configure_structured_logging, get_logger
from memoire.services.auth import get_auth_service
from memoire.ui.components.common import render_exception, render_footer, render_header, render_sidebar
from memoire.ui.components.gallery import close_hero_carousel
from memoire.ui.dev_auth import render_dev_auth_ui, setup_dev_auth_middleware
from memoire.ui.handlers.auth import resolve_session
from memoire.ui.handlers.upload import clear_upload_session_state
from memoire.ui.pages.admin import render_admin_page
from memoire.ui.pages.gallery import render_gallery_page
from memoire.ui.pages.upload import render_upload_page

configure_structured_logging()
logger = get_logger(__name__)

PAGE_RENDERERS = {
    "gallery": render_gallery_page,
    "upload": render_upload_page,
    "admin": render_admin_page,
}


def initialize_session_state() -> None:
    """Initialize session state variables."""
    if "current_page" not in st.session_state:
        st.session_state.current_page = "gallery"

    if "gallery_rerun_counter" not in st.session_state:
        st.session_state.gallery_rerun_counter = 0


@st.cache_resource
def seed_admin_profile() -> bool:
    """Write the configured admin profile once per process."""
    return get_auth_service().ensure_admin_profile()


def handle_navigation() -> None:
    """Apply a pending page change and release what the old page owned."""
    next_page = st.session_state.pop("next_page", None)
    if not next_page or next_page == st.session_state.current_page:
        return

    previous_page = st.session_state.current_page
    st.session_state.current_page = next_page
    logger.info("page_navigation", from_page=previous_page, to_page=next_page)

    if previous_page == "upload":
        clear_upload_session_state()
    if previous_page == "gallery":
        close_hero_carousel()


def render_main_content() -> None:
    """Render the main content area based on current page."""
    current_page = st.session_state.current_page
    renderer = PAGE_RENDERERS.get(current_page)
    if renderer is None:
        st.warning(f"Page '{current_page}' not found.")
        if st.button("🏠 Back to gallery", use_container_width=True, type="primary"):
            st.session_state.next_page = "gallery"
            st.rerun()
        return
    renderer()


def main() -> None:
    """Main application entry point."""
    st.set_page_config(
        page_title="Mémoire",
        page_icon="🎞️",
        layout="wide",
        initial_sidebar_state="expanded",
        menu_items={"Get Help": None, "Report a bug": None, "About": "Mémoire - personal media gallery"},
    )

    initialize_session_state()
    handle_navigation()

    try:
        seed_admin_profile()
        session = resolve_session()
    except MemoireError as e:
        logger.error("session_setup_failed", error=str(e))
        session = None

    setup_dev_auth_middleware()
    session = render_dev_auth_ui() or session

    render_header()
    render_sidebar(session.email if session else None, bool(session and session.is_admin))

    try:
        with st.container():
            render_main_content()
    except MemoireError as e:
        logger.error("page_render_failed", page=st.session_state.current_page, error=str(e))
        render_exception(e, {"page": st.session_state.current_page})

    render_footer()


if __name__ == "__main__":
    main()
