"""Gallery handlers for memoire application."""

from typing import Any

import streamlit as st

from ...error_handling import MemoireError
from ...logging_config import get_logger
from ...models.memory import MemoryRecord
from ...services.gallery import filter_records
from ...services.repository import get_repository
from ...services.viewer import ViewerState

logger = get_logger(__name__)


@st.cache_data(ttl=300)
def load_records(rerun_counter: int = 0) -> list[dict[str, Any]]:
    """
    Load every memory, newest first.

    Args:
        rerun_counter: A counter to manually trigger a cache refresh

    Returns:
        list: Record dictionaries (cache-friendly)
    """
    records = get_repository().list_records()
    logger.info("records_loaded", count=len(records), rerun_counter=rerun_counter)
    return [record.to_dict() for record in records]


def get_records() -> list[MemoryRecord]:
    """Cached record list for the current rerun counter."""
    rerun_counter = st.session_state.get("gallery_rerun_counter", 0)
    return [MemoryRecord.from_dict(data) for data in load_records(rerun_counter)]


@st.cache_data(ttl=300)
def _filtered_ids(rerun_counter: int, query: str) -> list[str]:
    records = [MemoryRecord.from_dict(data) for data in load_records(rerun_counter)]
    return [record.id for record in filter_records(records, query)]


def get_filtered_records(records: list[MemoryRecord], query: str) -> list[MemoryRecord]:
    """
    Search result for ``query``.

    Memoised on the record-set version and the committed query.
    """
    rerun_counter = st.session_state.get("gallery_rerun_counter", 0)
    by_id = {record.id: record for record in records}
    return [by_id[record_id] for record_id in _filtered_ids(rerun_counter, query.strip()) if record_id in by_id]


@st.cache_data(ttl=300)
def list_known_tags(rerun_counter: int = 0) -> list[str]:
    """Every tag in use, for the tag pickers."""
    try:
        return get_repository().list_tags()
    except MemoireError as e:
        logger.warning("list_tags_failed", error=str(e))
        return []


@st.cache_data(ttl=3000)
def resolve_public_url(path: str) -> str:
    """Public URL for a storage path (videos keep paths)."""
    return get_repository().get_public_url(path)


def refresh_gallery() -> None:
    """
    Invalidate the cached record list after a local mutation.

    The caches are shared by every session while the counter is per session,
    so the cached entries are dropped as well.
    """
    load_records.clear()
    _filtered_ids.clear()
    list_known_tags.clear()
    st.session_state.gallery_rerun_counter = st.session_state.get("gallery_rerun_counter", 0) + 1


def get_viewer() -> ViewerState:
    """The viewer state of this browser session."""
    if "viewer" not in st.session_state:
        st.session_state.viewer = ViewerState()
    return st.session_state.viewer
