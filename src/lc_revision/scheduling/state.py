from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Callable

from .errors import InvalidOutcomeError


Clock = Callable[[], date]
DayCount = Callable[[date], int]


def system_today() -> date:
    """Wall-clock date. Only used as the default clock."""
    return date.today()


def to_day(value: date | datetime) -> date:
    """Normalise a date or datetime to day granularity."""
    # datetime is a subclass of date, so it must be checked first
    if isinstance(value, datetime):
        return value.date()
    return value


class Outcome(str, Enum):
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    FAIL = "FAIL"

    @classmethod
    def parse(cls, value: object) -> "Outcome":
        """Return the matching outcome or raise InvalidOutcomeError.

        文字列は完全一致のみ受け付ける（"success" などは拒否）。
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        raise InvalidOutcomeError(value)


@dataclass(frozen=True)
class ScheduleState:
    """Revision schedule of a single tracked item."""

    repetition_count: int
    next_review_date: date
    last_reviewed_date: date | None = None
    total_reviews: int = 0


@dataclass(frozen=True)
class ScheduledState:
    """A ScheduleState together with the allocator's capacity verdict."""

    state: ScheduleState
    raw_date: date
    capacity_guaranteed: bool = True
