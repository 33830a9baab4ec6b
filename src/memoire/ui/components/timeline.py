"""Timeline component for memoire application."""

import streamlit as st

from ...models.memory import MemoryRecord
from ...services.gallery import group_by_timeline
from .gallery import render_memory_grid


def render_year_jump_bar(years: list[int]) -> None:
    """Links to each year section."""
    st.markdown(" · ".join(f"[{year}](#year-{year})" for year in years))


def render_timeline(records: list[MemoryRecord], is_admin: bool = False) -> None:
    """Render records grouped by year and month, newest first."""
    groups = group_by_timeline(records)
    render_year_jump_bar([group.year for group in groups])

    for year_group in groups:
        st.header(str(year_group.year), anchor=f"year-{year_group.year}")
        for month_group in year_group.months:
            st.subheader(month_group.name)
            render_memory_grid(
                month_group.records,
                is_admin=is_admin,
                key_prefix=f"timeline_{year_group.year}_{month_group.month}",
                navigation=records,
            )
