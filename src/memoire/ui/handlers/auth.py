"""Session handlers for memoire application.

Browsing and uploading need no session. A session only matters for the
admin flag, which is read once when the session is created and kept in
``st.session_state`` for its lifetime.
"""

import streamlit as st

from ...error_handling import AuthenticationError
from ...logging_config import get_logger, log_user_action
from ...services.auth import UserInfo, get_auth_service

logger = get_logger(__name__)

SESSION_KEY = "session_user"


def get_session() -> UserInfo | None:
    """Current session, or None for anonymous visitors."""
    return st.session_state.get(SESSION_KEY)


def set_session(user: UserInfo | None) -> None:
    st.session_state[SESSION_KEY] = user


def is_admin_session() -> bool:
    session = get_session()
    return bool(session and session.is_admin)


def resolve_session() -> UserInfo | None:
    """
    Return the current session, creating one from Cloud IAP headers when
    the app runs behind IAP.
    """
    session = get_session()
    if session is not None:
        return session

    headers = {}
    if hasattr(st, "context") and hasattr(st.context, "headers"):
        headers = dict(st.context.headers)

    session = get_auth_service().parse_iap_header(headers)
    if session is not None:
        set_session(session)
        logger.info("authentication_success", user_id=session.user_id, source=session.source)
    return session


def sign_in_with_password(email: str, password: str) -> UserInfo:
    """
    Sign in an admin and store the session.

    Raises:
        AuthenticationError: On bad credentials or a non-admin profile
    """
    session = get_auth_service().sign_in_with_password(email, password)
    set_session(session)
    # The admin view changes what the gallery renders
    st.session_state.gallery_rerun_counter = st.session_state.get("gallery_rerun_counter", 0) + 1
    return session


def sign_out() -> None:
    """Drop the current session."""
    session = get_session()
    set_session(None)
    if session is not None:
        log_user_action(session.user_id, "sign_out", source=session.source)


def try_sign_in(email: str, password: str) -> str | None:
    """Form helper: sign in and return an error message on failure."""
    try:
        sign_in_with_password(email, password)
    except AuthenticationError as e:
        return e.user_message
    return None
