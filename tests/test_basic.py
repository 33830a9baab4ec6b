"""
Basic tests to verify test environment setup.
"""

import pytest

from memoire import __description__, __version__


def test_version() -> None:
    """Test that version is defined."""
    assert __version__ == "0.1.0"


def test_description() -> None:
    """Test that description is defined."""
    assert __description__ == "Personal photo and video gallery with Streamlit"


@pytest.mark.unit
def test_unit_marker() -> None:
    """Test that unit marker works."""
    assert True


def test_sample_fixtures(photo_record, sample_image_data: bytes) -> None:
    """Test that fixtures are working."""
    assert photo_record.is_valid()
    assert isinstance(sample_image_data, bytes)
    assert len(sample_image_data) > 0
