"""Configuration for UI unit tests."""

from unittest.mock import patch

import pytest
import streamlit as st

from memoire.services.repository import set_repository


class FakeSessionState(dict):
    """dict with the attribute access st.session_state offers."""

    def __getattr__(self, key):
        try:
            return self[key]
        except KeyError as e:
            raise AttributeError(key) from e

    def __setattr__(self, key, value):
        self[key] = value

    def __delattr__(self, key):
        del self[key]


@pytest.fixture(autouse=True)
def disable_streamlit_caching():
    """Fixture to disable streamlit caching for all tests in this module."""
    st.cache_data.clear()
    st.cache_resource.clear()
    with (
        patch("streamlit.cache_data", new=lambda *args, **kwargs: lambda f: f),
        patch("streamlit.cache_resource", new=lambda *args, **kwargs: lambda f: f),
    ):
        yield


@pytest.fixture
def session_state():
    """A fresh st.session_state for one test."""
    state = FakeSessionState()
    with patch("streamlit.session_state", new=state):
        yield state


@pytest.fixture
def repository(mock_repository):
    """Install the mock repository as the global one."""
    set_repository(mock_repository)
    yield mock_repository
    set_repository(None)
