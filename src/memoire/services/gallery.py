"""Gallery logic for memoire application: search, timeline grouping and the hero carousel."""

import calendar
import time
from dataclasses import dataclass, field

from ..config import get_carousel_interval
from ..logging_config import get_logger
from ..models.memory import MemoryRecord

logger = get_logger(__name__)

HERO_SLIDE_LIMIT = 5


def filter_records(records: list[MemoryRecord], query: str | None) -> list[MemoryRecord]:
    """
    Case-insensitive title search.

    A blank query returns every record. Order is preserved.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return list(records)
    return [record for record in records if needle in record.title.lower()]


@dataclass
class MonthGroup:
    month: int
    records: list[MemoryRecord] = field(default_factory=list)

    @property
    def name(self) -> str:
        return calendar.month_name[self.month]


@dataclass
class YearGroup:
    year: int
    months: list[MonthGroup] = field(default_factory=list)

    @property
    def count(self) -> int:
        return sum(len(month.records) for month in self.months)


def group_by_timeline(records: list[MemoryRecord]) -> list[YearGroup]:
    """
    Bucket records by year, then month, both newest first.

    Records keep their input order inside a month.
    """
    years: dict[int, dict[int, MonthGroup]] = {}
    for record in records:
        months = years.setdefault(record.date.year, {})
        months.setdefault(record.date.month, MonthGroup(month=record.date.month)).records.append(record)

    return [
        YearGroup(year=year, months=[months[month] for month in sorted(months, reverse=True)])
        for year, months in sorted(years.items(), reverse=True)
    ]


def adjacent_record(records: list[MemoryRecord], current_id: str, direction: str) -> MemoryRecord | None:
    """
    Neighbour of ``current_id`` in ``records``.

    ``right`` is the next record, ``left`` the previous one. Returns None at
    either end or when the current record is not in the list.
    """
    index = next((i for i, record in enumerate(records) if record.id == current_id), None)
    if index is None:
        return None

    if direction == "right":
        target = index + 1
    elif direction == "left":
        target = index - 1
    else:
        raise ValueError(f"Unknown direction: {direction}")

    if 0 <= target < len(records):
        return records[target]
    return None


def hero_slides(records: list[MemoryRecord], limit: int = HERO_SLIDE_LIMIT) -> list[MemoryRecord]:
    """Most recent photo records, used as carousel slides."""
    return [record for record in records if not record.is_video][:limit]


class RotationTimer:
    """
    Fires every ``interval`` seconds while it is polled with ``tick``.

    The carousel owns exactly one of these. ``reset`` restarts the interval,
    ``cancel`` stops it for good.
    """

    def __init__(self, interval: float | None = None, now: float | None = None) -> None:
        self.interval = interval if interval is not None else get_carousel_interval()
        self._started = time.monotonic() if now is None else now
        self.cancelled = False

    def tick(self, now: float | None = None) -> bool:
        """True once per elapsed interval."""
        if self.cancelled:
            return False
        now = time.monotonic() if now is None else now
        if now - self._started >= self.interval:
            self._started = now
            return True
        return False

    def reset(self, now: float | None = None) -> None:
        if not self.cancelled:
            self._started = time.monotonic() if now is None else now

    def cancel(self) -> None:
        self.cancelled = True


class HeroCarousel:
    """Auto-rotating slide index over the hero slides."""

    def __init__(self, slides: list[MemoryRecord], timer: RotationTimer | None = None) -> None:
        self.slides = list(slides)
        self.index = 0
        self.timer = timer or RotationTimer()

    @property
    def current(self) -> MemoryRecord | None:
        return self.slides[self.index] if self.slides else None

    def set_slides(self, slides: list[MemoryRecord]) -> None:
        self.slides = list(slides)
        if self.index >= len(self.slides):
            self.index = 0

    def tick(self, now: float | None = None) -> bool:
        """Advance when the timer fires. Returns True if the slide changed."""
        if len(self.slides) < 2 or not self.timer.tick(now):
            return False
        self.index = (self.index + 1) % len(self.slides)
        return True

    def next(self, now: float | None = None) -> None:
        self._step(1, now)

    def previous(self, now: float | None = None) -> None:
        self._step(-1, now)

    def select(self, index: int, now: float | None = None) -> None:
        if not self.slides:
            return
        self.index = index % len(self.slides)
        self.timer.reset(now)

    def _step(self, offset: int, now: float | None) -> None:
        if not self.slides:
            return
        self.index = (self.index + offset + len(self.slides)) % len(self.slides)
        self.timer.reset(now)

    def close(self) -> None:
        self.timer.cancel()
        logger.debug("hero_carousel_closed")
