"""
Unit tests for gallery logic.
"""

from datetime import datetime

import pytest

from memoire.models.memory import MediaType, MemoryRecord
from memoire.services.gallery import (
    HeroCarousel,
    RotationTimer,
    adjacent_record,
    filter_records,
    group_by_timeline,
    hero_slides,
)


def make_record(record_id, title="t", date=datetime(2024, 1, 1), type=MediaType.PHOTO):
    return MemoryRecord(
        id=record_id,
        type=type,
        title=title,
        src=f"media/{record_id}",
        thumbnail="thumb" if type == MediaType.VIDEO else None,
        date=date,
    )


@pytest.fixture
def records(photo_record, video_record, album_record):
    return [photo_record, video_record, album_record]


class TestFilterRecords:
    """Test cases for title search."""

    def test_case_insensitive_substring(self, records):
        assert [r.id for r in filter_records(records, "BIRTH")] == ["video-1"]
        assert [r.id for r in filter_records(records, "day")] == ["photo-1", "video-1"]

    def test_blank_query_returns_all(self, records):
        assert filter_records(records, "   ") == records
        assert filter_records(records, None) == records

    def test_no_match(self, records):
        assert filter_records(records, "zebra") == []


class TestTimeline:
    """Test cases for timeline grouping."""

    def test_years_and_months_newest_first(self, records):
        years = group_by_timeline(records)

        assert [y.year for y in years] == [2024, 2023]
        assert [m.name for m in years[0].months] == ["March", "January"]
        assert years[0].count == 2
        assert [m.name for m in years[1].months] == ["December"]

    def test_month_keeps_input_order(self):
        first = make_record("a", date=datetime(2024, 6, 2))
        second = make_record("b", date=datetime(2024, 6, 20))

        years = group_by_timeline([first, second])

        assert [r.id for r in years[0].months[0].records] == ["a", "b"]

    def test_empty(self):
        assert group_by_timeline([]) == []


class TestAdjacentRecord:
    """Test cases for viewer navigation neighbours."""

    def test_right_and_left(self, records):
        assert adjacent_record(records, "video-1", "right").id == "album-1"
        assert adjacent_record(records, "video-1", "left").id == "photo-1"

    def test_ends_return_none(self, records):
        assert adjacent_record(records, "photo-1", "left") is None
        assert adjacent_record(records, "album-1", "right") is None
        assert adjacent_record(records, "missing", "right") is None

    def test_bad_direction(self, records):
        with pytest.raises(ValueError):
            adjacent_record(records, "photo-1", "up")


class TestHeroCarousel:
    """Test cases for the hero carousel and its timer."""

    def test_hero_slides_skip_videos(self, records):
        assert [r.id for r in hero_slides(records)] == ["photo-1", "album-1"]
        many = [make_record(str(i)) for i in range(8)]
        assert len(hero_slides(many)) == 5

    def test_timer_fires_once_per_interval(self):
        timer = RotationTimer(interval=3.0, now=0.0)

        assert not timer.tick(2.9)
        assert timer.tick(3.0)
        assert not timer.tick(5.0)
        assert timer.tick(6.0)

    def test_cancelled_timer_never_fires(self):
        timer = RotationTimer(interval=1.0, now=0.0)
        timer.cancel()

        assert not timer.tick(10.0)

    def test_auto_advance_wraps(self):
        slides = [make_record(str(i)) for i in range(3)]
        carousel = HeroCarousel(slides, RotationTimer(interval=3.0, now=0.0))

        for second in (3.0, 6.0, 9.0):
            assert carousel.tick(second)

        assert carousel.index == 0

    def test_manual_navigation_resets_timer(self):
        """A click restarts the interval so the slide does not jump right after."""
        slides = [make_record(str(i)) for i in range(3)]
        carousel = HeroCarousel(slides, RotationTimer(interval=3.0, now=0.0))

        carousel.next(now=2.5)
        assert carousel.index == 1
        assert not carousel.tick(3.0)
        assert carousel.tick(5.5)
        assert carousel.index == 2

    def test_previous_is_circular(self):
        carousel = HeroCarousel([make_record(str(i)) for i in range(3)], RotationTimer(interval=3.0, now=0.0))

        carousel.previous(now=1.0)

        assert carousel.index == 2

    def test_select_and_shrinking_slides(self):
        slides = [make_record(str(i)) for i in range(4)]
        carousel = HeroCarousel(slides, RotationTimer(interval=3.0, now=0.0))

        carousel.select(3, now=1.0)
        assert carousel.current.id == "3"

        carousel.set_slides(slides[:2])
        assert carousel.index == 0

    def test_single_slide_does_not_rotate(self):
        carousel = HeroCarousel([make_record("only")], RotationTimer(interval=1.0, now=0.0))
        assert not carousel.tick(5.0)

    def test_close_stops_rotation(self):
        carousel = HeroCarousel([make_record("a"), make_record("b")], RotationTimer(interval=1.0, now=0.0))
        carousel.close()

        assert carousel.timer.cancelled
        assert not carousel.tick(5.0)
        assert HeroCarousel([]).current is None
