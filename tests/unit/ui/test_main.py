"""Tests for the application entry point."""

from unittest.mock import patch

from memoire.main import handle_navigation, initialize_session_state


class TestNavigation:
    """Test page switching."""

    def test_initialize_session_state(self, session_state):
        initialize_session_state()

        assert session_state.current_page == "gallery"
        assert session_state.gallery_rerun_counter == 0

    @patch("memoire.main.close_hero_carousel")
    @patch("memoire.main.clear_upload_session_state")
    def test_leaving_upload_releases_stage(self, mock_clear, mock_close, session_state):
        session_state.update(current_page="upload", next_page="gallery")

        handle_navigation()

        assert session_state.current_page == "gallery"
        mock_clear.assert_called_once()
        mock_close.assert_not_called()

    @patch("memoire.main.close_hero_carousel")
    @patch("memoire.main.clear_upload_session_state")
    def test_leaving_gallery_stops_carousel(self, mock_clear, mock_close, session_state):
        session_state.update(current_page="gallery", next_page="admin")

        handle_navigation()

        assert session_state.current_page == "admin"
        mock_close.assert_called_once()
        mock_clear.assert_not_called()

    @patch("memoire.main.close_hero_carousel")
    def test_same_page_is_noop(self, mock_close, session_state):
        session_state.update(current_page="gallery", next_page="gallery")

        handle_navigation()

        assert "next_page" not in session_state
        mock_close.assert_not_called()
