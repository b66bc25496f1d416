from dataclasses import dataclass
from datetime import date, datetime

from lc_revision.scheduling import ScheduleState, filter_due, is_due


def _state(day: date) -> ScheduleState:
    return ScheduleState(repetition_count=0, next_review_date=day)


def test_is_due_past_and_today():
    assert is_due(date(2024, 1, 1), date(2024, 1, 2)) is True
    assert is_due(date(2024, 1, 2), date(2024, 1, 2)) is True


def test_is_due_future():
    assert is_due(date(2024, 1, 1), date(2023, 12, 31)) is False


def test_is_due_ignores_time_of_day():
    assert is_due(datetime(2024, 1, 2, 23, 0), datetime(2024, 1, 2, 0, 1)) is True


def test_filter_due_orders_and_truncates():
    states = [
        _state(date(2024, 1, 3)),
        _state(date(2023, 12, 30)),
        _state(date(2024, 1, 9)),
        _state(date(2024, 1, 1)),
        _state(date(2023, 12, 31)),
    ]

    due = filter_due(states, date(2024, 1, 3), limit=3)

    assert [s.next_review_date for s in due] == [date(2023, 12, 30), date(2023, 12, 31), date(2024, 1, 1)]


def test_filter_due_keeps_input_order_on_ties():
    first = ScheduleState(repetition_count=1, next_review_date=date(2024, 1, 1))
    second = ScheduleState(repetition_count=2, next_review_date=date(2024, 1, 1))

    assert filter_due([first, second], date(2024, 1, 1), limit=5) == [first, second]


def test_filter_due_zero_limit():
    assert filter_due([_state(date(2024, 1, 1))], date(2024, 1, 1), limit=0) == []


def test_filter_due_with_custom_key():
    @dataclass
    class Row:
        slug: str
        due_on: date

    rows = [Row("b", date(2024, 1, 2)), Row("a", date(2024, 1, 1)), Row("c", date(2024, 2, 1))]

    due = filter_due(rows, date(2024, 1, 5), limit=10, key=lambda row: row.due_on)

    assert [row.slug for row in due] == ["a", "b"]
