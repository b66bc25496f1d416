from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from ..config import DEFAULT_DAILY_REVIEW_LIMIT, DEFAULT_SLOT_SEARCH_HORIZON_DAYS
from ..logging import logger
from .state import DayCount, to_day


@dataclass(frozen=True)
class SlotAllocation:
    """Result of a slot search.

    - review_date: 割り当て日
    - capacity_guaranteed: False のときは探索範囲が全て満杯で、上限超過を許容して raw_date を返している
    - probed_days: 問い合わせた日数
    """

    review_date: date
    capacity_guaranteed: bool
    probed_days: int


class SlotAllocator:
    """Greedy forward search for the nearest day with spare capacity.

    `day_count(day)` must return how many items are already scheduled on `day`.
    The walk starts at the raw date, never looks backward, and checks at most
    `horizon_days` days. If every one of them is full, the raw date is returned
    unchanged and the result is flagged as not capacity-guaranteed.

    The count is read here but written by the caller, so two unsynchronised
    callers can both be given the same last free slot. Run allocate-and-commit
    under one write transaction (see RevisionSQLiteStore.record_outcome).
    """

    def __init__(
        self,
        capacity: int = DEFAULT_DAILY_REVIEW_LIMIT,
        horizon_days: int = DEFAULT_SLOT_SEARCH_HORIZON_DAYS,
    ) -> None:
        if capacity < 1:
            raise ValueError("daily capacity must be >= 1")
        if horizon_days < 1:
            raise ValueError("search horizon must be >= 1 day")
        self.capacity = capacity
        self.horizon_days = horizon_days

    def find_slot(self, raw_date: date | datetime, day_count: DayCount) -> SlotAllocation:
        start = to_day(raw_date)
        candidate = start
        for probed in range(1, self.horizon_days + 1):
            if day_count(candidate) < self.capacity:
                return SlotAllocation(review_date=candidate, capacity_guaranteed=True, probed_days=probed)
            candidate += timedelta(days=1)

        logger.warning(
            "slot_capacity_exhausted",
            raw_date=start.isoformat(),
            capacity=self.capacity,
            horizon_days=self.horizon_days,
        )
        return SlotAllocation(review_date=start, capacity_guaranteed=False, probed_days=self.horizon_days)

    def allocate(self, raw_date: date | datetime, day_count: DayCount) -> date:
        return self.find_slot(raw_date, day_count).review_date


def allocate(
    raw_date: date | datetime,
    capacity: int,
    day_count: DayCount,
    horizon_days: int = DEFAULT_SLOT_SEARCH_HORIZON_DAYS,
) -> date:
    """Functional form of SlotAllocator.allocate."""
    return SlotAllocator(capacity=capacity, horizon_days=horizon_days).allocate(raw_date, day_count)
