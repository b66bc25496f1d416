from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Iterable, TypeVar

from .state import ScheduleState, to_day


T = TypeVar("T")


def is_due(next_review_date: date | datetime, today: date | datetime) -> bool:
    """True when the review date is today or earlier (time of day ignored)."""
    return to_day(next_review_date) <= to_day(today)


def _state_review_date(item: ScheduleState) -> date:
    return item.next_review_date


def filter_due(
    items: Iterable[T],
    today: date | datetime,
    limit: int,
    key: Callable[[T], date | datetime] = _state_review_date,
) -> list[T]:
    """Due items, soonest first, at most `limit` of them.

    `key` extracts the review date; the default reads `next_review_date`.
    Ties keep their input order.
    """
    if limit <= 0:
        return []
    due = [item for item in items if is_due(key(item), today)]
    due.sort(key=lambda item: to_day(key(item)))
    return due[:limit]
