from __future__ import annotations

from datetime import date
from typing import Iterable, Sequence, TypeVar

from ..config import Settings
from ..logging import logger
from .allocator import SlotAllocator
from .due import filter_due
from .policy import IntervalPolicy
from .state import Clock, DayCount, Outcome, ScheduledState, ScheduleState, system_today


T = TypeVar("T")


class RevisionScheduler:
    """Compose IntervalPolicy and SlotAllocator for one scheduling event.

    The scheduler only computes states; it never persists them. The count read
    through `day_count` and the write of the returned state must happen inside
    one serialised unit (RevisionSQLiteStore does this with BEGIN IMMEDIATE).
    Callers that skip that get a best-effort daily limit only.
    """

    def __init__(
        self,
        policy: IntervalPolicy | None = None,
        allocator: SlotAllocator | None = None,
        clock: Clock = system_today,
    ) -> None:
        self.policy = policy or IntervalPolicy()
        self.allocator = allocator or SlotAllocator()
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = system_today) -> "RevisionScheduler":
        return cls(
            policy=IntervalPolicy(settings.revision_intervals),
            allocator=SlotAllocator(
                capacity=settings.daily_review_limit,
                horizon_days=settings.slot_search_horizon_days,
            ),
            clock=clock,
        )

    @property
    def intervals(self) -> Sequence[int]:
        return self.policy.intervals

    def today(self) -> date:
        return self.clock()

    def initial_schedule(self) -> date:
        """Raw first review date for a brand-new item, before allocation."""
        return self.policy.initial_date(self.today())

    def initial_state(self, day_count: DayCount) -> ScheduledState:
        raw_date = self.initial_schedule()
        slot = self.allocator.find_slot(raw_date, day_count)
        state = ScheduleState(repetition_count=0, next_review_date=slot.review_date)
        return ScheduledState(state=state, raw_date=raw_date, capacity_guaranteed=slot.capacity_guaranteed)

    def record_outcome(
        self,
        item_id: str,
        outcome: Outcome | str,
        current_state: ScheduleState,
        day_count: DayCount,
    ) -> ScheduledState:
        """Return the next state of an item after a review outcome.

        Raises InvalidOutcomeError before any collaborator is queried.
        """
        outcome = Outcome.parse(outcome)
        today = self.today()
        decision = self.policy.compute_next(outcome, current_state.repetition_count, today)
        slot = self.allocator.find_slot(decision.raw_date, day_count)

        new_state = ScheduleState(
            repetition_count=decision.repetition_count,
            next_review_date=slot.review_date,
            last_reviewed_date=today,
            total_reviews=current_state.total_reviews + 1,
        )
        logger.info(
            "revision_scheduled",
            item_id=item_id,
            outcome=outcome.value,
            repetition_count=new_state.repetition_count,
            interval_days=decision.interval_days,
            raw_date=decision.raw_date.isoformat(),
            next_review=new_state.next_review_date.isoformat(),
            capacity_guaranteed=slot.capacity_guaranteed,
        )
        return ScheduledState(
            state=new_state,
            raw_date=decision.raw_date,
            capacity_guaranteed=slot.capacity_guaranteed,
        )

    def filter_due(self, items: Iterable[T], limit: int, today: date | None = None, **kwargs) -> list[T]:
        return filter_due(items, today or self.today(), limit, **kwargs)
