from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Sequence

from ..config import DEFAULT_REVISION_INTERVALS
from .state import Outcome, to_day


@dataclass(frozen=True)
class IntervalDecision:
    repetition_count: int
    interval_days: int
    raw_date: date


class IntervalPolicy:
    """Fixed-ladder interval policy.

    - SUCCESS: advance one rung
    - PARTIAL: repeat the current rung
    - FAIL: gentle reset to rung 1 (3 days with the default ladder), not rung 0

    Counts past the end of the ladder saturate at the last (largest) interval.
    """

    def __init__(self, intervals: Sequence[int] = DEFAULT_REVISION_INTERVALS) -> None:
        ladder = tuple(int(days) for days in intervals)
        if len(ladder) < 2:
            raise ValueError("interval ladder needs at least two entries")
        if any(days <= 0 for days in ladder):
            raise ValueError("interval ladder entries must be positive")
        self.intervals = ladder

    @property
    def max_interval(self) -> int:
        return self.intervals[-1]

    def interval_for(self, count: int) -> int:
        if count < 0:
            raise ValueError(f"repetition count must be non-negative: {count}")
        if count >= len(self.intervals):
            return self.intervals[-1]
        return self.intervals[count]

    def compute_next(self, outcome: Outcome | str, current_count: int, today: date) -> IntervalDecision:
        """Map an outcome and the current streak to the new count and raw date.

        The raw date is not capacity-checked; pass it through SlotAllocator.
        """
        outcome = Outcome.parse(outcome)
        if outcome is Outcome.SUCCESS:
            new_count = current_count + 1
            interval_days = self.interval_for(new_count)
        elif outcome is Outcome.PARTIAL:
            new_count = current_count
            interval_days = self.interval_for(current_count)
        else:
            new_count = 1
            interval_days = self.intervals[1]

        raw_date = to_day(today) + timedelta(days=interval_days)
        return IntervalDecision(repetition_count=new_count, interval_days=interval_days, raw_date=raw_date)

    def initial_date(self, today: date) -> date:
        """Raw first review date of a brand-new item (today + ladder[0])."""
        return to_day(today) + timedelta(days=self.intervals[0])
