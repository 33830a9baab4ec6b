"""
Development sign-in for local testing.

Outside production a sidebar form creates a session for any email and user
ID. The admin flag still comes from the profiles table.
"""

import streamlit as st

from ..config import get_config
from ..error_handling import AuthenticationError
from ..logging_config import get_logger
from ..services.auth import UserInfo, get_auth_service
from .handlers.auth import get_session, set_session, sign_out

logger = get_logger(__name__)


def is_development_mode() -> bool:
    return get_config().is_development()


def render_dev_auth_ui() -> UserInfo | None:
    """
    Render the development sign-in form in the sidebar.

    Returns:
        UserInfo: The current session, if any
    """
    if not is_development_mode():
        return None

    st.sidebar.markdown("---")
    st.sidebar.markdown("### 🔧 Development mode")

    current_user = get_session()
    if current_user is not None:
        st.sidebar.success(f"Signed in: {current_user.email}")
        if st.sidebar.button("Sign out", key="dev_sign_out"):
            sign_out()
            st.rerun()
        return current_user

    config = get_config()
    with st.sidebar.form("dev_auth_form"):
        email = st.text_input("Email", value=config.get("DEV_USER_EMAIL", "dev@example.com"))
        user_id = st.text_input("User ID", value=config.get("DEV_USER_ID", "dev-user-123"))
        submitted = st.form_submit_button("Sign in (development)")

    if submitted:
        if not email or not user_id:
            st.sidebar.error("Please enter an email and a user ID")
            return None
        try:
            user = get_auth_service().development_user(email=email, user_id=user_id)
        except AuthenticationError as e:
            st.sidebar.error(e.user_message)
            return None

        set_session(user)
        logger.info("development_login", user_id=user_id, email=email, is_admin=user.is_admin)
        st.rerun()

    return None


def setup_dev_auth_middleware() -> None:
    """Show a DEV MODE badge outside production."""
    if not is_development_mode():
        return

    st.markdown(
        """
    <div style="
        position: fixed;
        top: 0;
        right: 0;
        background-color: #ff6b6b;
        color: white;
        padding: 5px 10px;
        font-size: 12px;
        z-index: 999;
        border-radius: 0 0 0 5px;
    ">
        🔧 DEV MODE
    </div>
    """,
        unsafe_allow_html=True,
    )
