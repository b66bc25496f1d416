"""Shared fixtures: a pinned clock and throwaway SQLite stores."""

from datetime import date
from pathlib import Path

import pytest

from lc_revision.scheduling import IntervalPolicy, RevisionScheduler, SlotAllocator
from lc_revision.store import RevisionSQLiteStore


TODAY = date(2024, 1, 1)


class FixedClock:
    """Callable clock whose date tests can move forward."""

    def __init__(self, today: date = TODAY) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def scheduler(clock: FixedClock) -> RevisionScheduler:
    return RevisionScheduler(policy=IntervalPolicy(), allocator=SlotAllocator(capacity=3, horizon_days=100), clock=clock)


@pytest.fixture()
def store(tmp_path: Path, scheduler: RevisionScheduler) -> RevisionSQLiteStore:
    return RevisionSQLiteStore(db_path=str(tmp_path / "revisions.sqlite3"), scheduler=scheduler)


class CalendarCounts:
    """In-memory day -> count map standing in for the capacity query."""

    def __init__(self, counts: dict[date, int] | None = None) -> None:
        self.counts: dict[date, int] = dict(counts or {})
        self.queried: list[date] = []

    def __call__(self, day: date) -> int:
        self.queried.append(day)
        return self.counts.get(day, 0)

    def book(self, day: date) -> None:
        self.counts[day] = self.counts.get(day, 0) + 1


@pytest.fixture()
def calendar() -> CalendarCounts:
    return CalendarCounts()
