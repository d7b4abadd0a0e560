"""Tests for gestational timeline calculation"""
from datetime import date, datetime

import pytest

from app.domain.errors import InvalidInputError
from app.domain.timeline import (
    PREGNANCY_DAYS, add_days, compute_timeline, date_for_week, trimester_for_week,
)


class TestDueDate:
    def test_due_date_is_280_days_after_lmp(self):
        t = compute_timeline(date(2024, 1, 1), None, date(2024, 1, 1))
        assert t.due_date == date(2024, 10, 7)

    def test_explicit_due_date_is_kept(self):
        t = compute_timeline(date(2024, 1, 1), date(2024, 10, 1), date(2024, 3, 25))
        assert t.due_date == date(2024, 10, 1)

    def test_lmp_derived_from_due_date(self):
        t = compute_timeline(None, date(2024, 10, 7), date(2024, 3, 25))
        assert t.lmp == date(2024, 1, 1)
        assert t.current_week == 13

    def test_both_dates_missing(self):
        with pytest.raises(InvalidInputError):
            compute_timeline(None, None, date(2024, 3, 25))


class TestCurrentWeek:
    def test_reference_scenario(self):
        t = compute_timeline(date(2024, 1, 1), None, date(2024, 3, 25))
        assert t.current_week == 13
        assert t.trimester == 2
        assert t.due_date == date(2024, 10, 7)

    def test_first_day_is_week_one(self):
        t = compute_timeline(date(2024, 1, 1), None, date(2024, 1, 1))
        assert t.current_week == 1
        assert t.trimester == 1

    def test_day_seven_starts_week_two(self):
        assert compute_timeline(date(2024, 1, 1), None, date(2024, 1, 7)).current_week == 1
        assert compute_timeline(date(2024, 1, 1), None, date(2024, 1, 8)).current_week == 2

    def test_partial_day_rounds_up(self):
        # 6.5 days elapsed counts as 7
        t = compute_timeline(datetime(2024, 1, 1, 12, 0), None, date(2024, 1, 8))
        assert t.current_week == 2
        assert t.lmp == date(2024, 1, 1)

    def test_future_lmp_rejected(self):
        with pytest.raises(InvalidInputError):
            compute_timeline(date(2024, 4, 1), None, date(2024, 3, 25))

    def test_past_due_date_keeps_counting(self):
        t = compute_timeline(date(2024, 1, 1), None, date(2024, 10, 21))
        assert t.current_week == 43
        assert t.trimester == 3


class TestTrimester:
    @pytest.mark.parametrize("week,expected", [
        (1, 1), (12, 1), (13, 2), (26, 2), (27, 3), (40, 3),
    ])
    def test_boundaries(self, week, expected):
        assert trimester_for_week(week) == expected


def test_date_for_week():
    assert date_for_week(date(2024, 1, 1), 1) == date(2024, 1, 1)
    assert date_for_week(date(2024, 1, 1), 13) == date(2024, 3, 25)


def test_add_days_crosses_leap_day():
    assert add_days(date(2024, 2, 28), 1) == date(2024, 2, 29)
    assert add_days(date(2024, 10, 7), -PREGNANCY_DAYS) == date(2024, 1, 1)
