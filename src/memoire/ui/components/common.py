"""Reusable UI components for memoire application."""

import streamlit as st

from ...error_handling import ErrorCategory, MemoireError, handle_error
from ...logging_config import get_logger

logger = get_logger(__name__)

PAGES = {"🖼️ Gallery": "gallery", "📤 Upload": "upload", "🛡️ Admin": "admin"}


def render_empty_state(
    title: str,
    description: str,
    icon: str = "📭",
    action_text: str | None = None,
    action_page: str | None = None,
) -> None:
    """
    Render an empty state message with optional action button.

    Args:
        title: Main title for the empty state
        description: Description text
        icon: Emoji icon to display
        action_text: Text for action button (optional)
        action_page: Page to navigate to when action button is clicked (optional)
    """
    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        st.markdown(
            f"""
        <div style='text-align: center; padding: 2rem 0;'>
            <div style='font-size: 4rem; margin-bottom: 1rem;'>{icon}</div>
            <h3 style='color: #666; margin-bottom: 1rem;'>{title}</h3>
            <p style='color: #888; margin-bottom: 2rem;'>{description}</p>
        </div>
        """,
            unsafe_allow_html=True,
        )

        if action_text and action_page:
            if st.button(action_text, use_container_width=True, type="primary"):
                st.session_state.next_page = action_page
                st.rerun()


def render_error_message(error_type: str, message: str, details: str | None = None) -> None:
    """
    Render a standardized error message.

    Args:
        error_type: Type of error (e.g., "Upload Error")
        message: Main error message
        details: Additional error details (optional)
    """
    st.error(f"**{error_type}:** {message}")

    if details:
        with st.expander("🔍 Error details"):
            st.code(details)


def render_exception(error: Exception, context: dict | None = None) -> None:
    """Show the user message of an error, classifying foreign exceptions first."""
    error_info = error.get_error_info() if isinstance(error, MemoireError) else handle_error(error, context)
    message = error_info.user_message
    if error_info.retry_suggested and "try again" not in message.lower():
        message = f"{message} Please try again."

    if error_info.category == ErrorCategory.VALIDATION:
        st.warning(message)
    else:
        st.error(message)

    logger.info("error_displayed_to_user", error_code=error_info.code, category=error_info.category.value)


def render_header() -> None:
    """Render the application header."""
    st.markdown("# 🎞️ Mémoire")
    st.caption("Photos and videos worth keeping")
    st.divider()


def render_sidebar(session_email: str | None = None, is_admin: bool = False) -> None:
    """Render the sidebar navigation and the current session."""
    with st.sidebar:
        st.markdown("### 🎞️ Mémoire")
        st.divider()

        current_page = st.session_state.current_page
        for page_name, page_key in PAGES.items():
            if st.button(
                page_name,
                key=f"nav_{page_key}",
                use_container_width=True,
                type="primary" if page_key == current_page else "secondary",
            ):
                logger.info("page_navigation", from_page=current_page, to_page=page_key)
                st.session_state.next_page = page_key
                st.rerun()

        st.divider()

        if session_email:
            st.markdown(f"📧 {session_email}")
            if is_admin:
                st.caption("Administrator")


def render_footer() -> None:
    """Render the application footer."""
    st.divider()
    st.markdown(
        """
    <div style='text-align: center; color: #666; font-size: 0.8em;'>
        <strong>Mémoire v0.1</strong>
    </div>
    """,
        unsafe_allow_html=True,
    )
