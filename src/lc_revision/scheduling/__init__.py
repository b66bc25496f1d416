"""Spaced-repetition scheduling engine.

IntervalPolicy -> SlotAllocator -> (persist), with DueSelector at read time.
"""

from .allocator import SlotAllocation, SlotAllocator, allocate
from .due import filter_due, is_due
from .engine import RevisionScheduler
from .errors import CollaboratorUnavailableError, InvalidOutcomeError, SchedulingError
from .policy import IntervalDecision, IntervalPolicy
from .state import Outcome, ScheduledState, ScheduleState, system_today, to_day

__all__ = [
    "CollaboratorUnavailableError",
    "IntervalDecision",
    "IntervalPolicy",
    "InvalidOutcomeError",
    "Outcome",
    "RevisionScheduler",
    "ScheduleState",
    "ScheduledState",
    "SchedulingError",
    "SlotAllocation",
    "SlotAllocator",
    "allocate",
    "filter_due",
    "is_due",
    "system_today",
    "to_day",
]
