"""Gallery components for memoire application."""

from datetime import timedelta

import streamlit as st

from ...config import get_carousel_interval
from ...logging_config import get_logger
from ...models.memory import MemoryRecord
from ...services.gallery import HeroCarousel, hero_slides
from ..handlers.gallery import get_viewer
from .admin import render_delete_control
from .viewer import show_viewer_dialog

logger = get_logger(__name__)

GRID_COLUMNS = 4


def render_memory_grid(
    records: list[MemoryRecord],
    is_admin: bool = False,
    key_prefix: str = "grid",
    navigation: list[MemoryRecord] | None = None,
) -> None:
    """
    Render records as a masonry grid.

    Cards are dealt into columns round-robin, so each column stacks
    independently of the card heights in its neighbours.

    Args:
        records: Records in display order
        is_admin: Render the delete control on each card
        key_prefix: Widget key namespace, unique per grid on a page
        navigation: List the viewer steps through (defaults to ``records``)
    """
    columns = st.columns(GRID_COLUMNS)
    for index, record in enumerate(records):
        with columns[index % GRID_COLUMNS]:
            render_memory_card(record, navigation or records, is_admin=is_admin, key_prefix=key_prefix)


def render_memory_card(
    record: MemoryRecord, records: list[MemoryRecord], is_admin: bool = False, key_prefix: str = "grid"
) -> None:
    """
    Render one card. Clicking it opens the viewer at this record.

    Args:
        record: Record to show
        records: The list the viewer navigates through
        is_admin: Render the delete control
        key_prefix: Widget key namespace
    """
    with st.container(border=True):
        st.image(record.cover, use_container_width=True)
        st.markdown(f"**{record.title}**")
        st.caption(_card_caption(record))

        if record.tags:
            st.caption(" ".join(f"#{tag}" for tag in record.tags))

        if st.button("🔍 View", key=f"{key_prefix}_view_{record.id}", use_container_width=True):
            get_viewer().open(record, direction=None)
            logger.debug("viewer_requested", record_id=record.id)
            show_viewer_dialog(records)

        if is_admin:
            render_delete_control(record, key_prefix=key_prefix)


def _card_caption(record: MemoryRecord) -> str:
    parts = [f"📅 {record.date.strftime('%Y-%m-%d')}"]
    if record.is_video:
        parts.append(f"▶️ {record.duration}" if record.duration else "▶️ Video")
    elif record.is_album:
        parts.append(f"📚 {len(record.album_photos or [])} photos")
    return " · ".join(parts)


def get_hero_carousel(records: list[MemoryRecord]) -> HeroCarousel:
    """The carousel of this browser session, refreshed with the latest slides."""
    carousel = st.session_state.get("hero_carousel")
    if carousel is None or carousel.timer.cancelled:
        carousel = HeroCarousel(hero_slides(records))
        st.session_state.hero_carousel = carousel
    else:
        carousel.set_slides(hero_slides(records))
    return carousel


def close_hero_carousel() -> None:
    """Cancel the carousel timer when the gallery is left."""
    carousel = st.session_state.pop("hero_carousel", None)
    if carousel is not None:
        carousel.close()


def render_hero_carousel(records: list[MemoryRecord]) -> None:
    """Render the auto-rotating hero of recent photos."""
    carousel = get_hero_carousel(records)
    if carousel.current is None:
        return

    # Poll at a fraction of the interval; the timer decides when to advance
    poll_seconds = max(0.5, get_carousel_interval() / 3)

    @st.fragment(run_every=timedelta(seconds=poll_seconds))
    def _hero() -> None:
        carousel.tick()
        slide = carousel.current
        if slide is None:
            return

        st.image(slide.cover, caption=slide.title, use_container_width=True)

        col1, col2, col3 = st.columns([1, 6, 1])
        with col1:
            if st.button("◀", key="hero_prev", use_container_width=True):
                carousel.previous()
                st.rerun(scope="fragment")
        with col2:
            st.caption(" ".join("●" if i == carousel.index else "○" for i in range(len(carousel.slides))))
        with col3:
            if st.button("▶", key="hero_next", use_container_width=True):
                carousel.next()
                st.rerun(scope="fragment")

    _hero()
