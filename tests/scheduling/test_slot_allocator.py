from datetime import date, datetime, timedelta

import pytest
from structlog.testing import capture_logs

from lc_revision.scheduling import SlotAllocator, allocate


RAW = date(2024, 1, 5)


def test_returns_raw_date_when_it_has_room(calendar):
    calendar.counts[RAW] = 2

    assert allocate(RAW, 3, calendar) == RAW
    assert calendar.queried == [RAW]


def test_full_day_moves_to_next_day(calendar):
    calendar.counts[RAW] = 3

    assert allocate(RAW, 3, calendar) == date(2024, 1, 6)


def test_skips_a_run_of_full_days(calendar):
    for offset in range(4):
        calendar.counts[RAW + timedelta(days=offset)] = 3

    slot = SlotAllocator(capacity=3).find_slot(RAW, calendar)

    assert slot.review_date == date(2024, 1, 9)
    assert slot.capacity_guaranteed is True
    assert slot.probed_days == 5


def test_never_moves_backward(calendar):
    # earlier days are empty but must not be used
    calendar.counts[RAW] = 3

    assert allocate(RAW, 3, calendar) > RAW
    assert all(day >= RAW for day in calendar.queried)


def test_datetime_input_is_normalised(calendar):
    result = allocate(datetime(2024, 1, 5, 18, 30), 3, calendar)

    assert result == RAW
    assert calendar.queried == [RAW]


def test_exhausted_horizon_falls_back_to_raw_date():
    # every day is full: capacity is knowingly exceeded instead of failing
    allocator = SlotAllocator(capacity=3, horizon_days=100)

    with capture_logs() as logs:
        slot = allocator.find_slot(RAW, lambda day: 3)

    assert slot.review_date == RAW
    assert slot.capacity_guaranteed is False
    assert slot.probed_days == 100
    assert [entry["event"] for entry in logs] == ["slot_capacity_exhausted"]
    assert logs[0]["log_level"] == "warning"


def test_horizon_bounds_the_number_of_queries(calendar):
    full = {RAW + timedelta(days=offset): 3 for offset in range(10)}
    calendar.counts.update(full)

    assert allocate(RAW, 3, calendar, horizon_days=10) == RAW
    assert len(calendar.queried) == 10


def test_last_day_of_horizon_is_still_a_candidate(calendar):
    calendar.counts.update({RAW + timedelta(days=offset): 3 for offset in range(99)})

    slot = SlotAllocator(capacity=3, horizon_days=100).find_slot(RAW, calendar)

    assert slot.review_date == RAW + timedelta(days=99)
    assert slot.capacity_guaranteed is True


def test_sequential_allocations_respect_capacity(calendar):
    allocator = SlotAllocator(capacity=3, horizon_days=100)

    for _ in range(3 * 100):
        calendar.book(allocator.allocate(RAW, calendar))

    assert max(calendar.counts.values()) == 3
    assert min(calendar.counts) == RAW
    assert max(calendar.counts) == RAW + timedelta(days=99)


def test_unsynchronised_callers_can_overbook(calendar):
    # two callers read the same count before either writes
    calendar.counts[RAW] = 2
    first = allocate(RAW, 3, calendar)
    second = allocate(RAW, 3, calendar)
    calendar.book(first)
    calendar.book(second)

    assert first == second == RAW
    assert calendar.counts[RAW] == 4


@pytest.mark.parametrize("capacity,horizon", [(0, 100), (3, 0)])
def test_invalid_parameters(capacity, horizon):
    with pytest.raises(ValueError):
        SlotAllocator(capacity=capacity, horizon_days=horizon)
