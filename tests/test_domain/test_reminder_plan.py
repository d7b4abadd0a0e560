"""Tests for the milestone reminder plan"""
from datetime import date, datetime

from app.domain.reminder_plan import FIRST_VISIT, plan_reminders
from app.domain.timeline import compute_timeline

LMP = date(2024, 1, 1)


def _plan(today: datetime):
    return plan_reminders(compute_timeline(LMP, None, today.date()), today)


def _keys(plan):
    return [p.milestone_key for p in plan]


class TestWeek13:
    """LMP 2024-01-01, now 2024-03-25 10:00 -> week 13"""

    def setup_method(self):
        self.now = datetime(2024, 3, 25, 10, 0)
        self.plan = _plan(self.now)

    def test_closed_windows_skipped(self):
        keys = _keys(self.plan)
        assert FIRST_VISIT.key not in keys
        assert "ultrasound:dating" in keys  # window 11-14 still open

    def test_plan_size(self):
        # 6 milestones + 7 antenatal contacts + supplements for weeks 13..16
        assert len(self.plan) == 17

    def test_supplements_cover_next_four_weeks(self):
        supplements = [k for k in _keys(self.plan) if k.startswith("supplement:")]
        assert supplements == [
            "supplement:week-13", "supplement:week-14", "supplement:week-15", "supplement:week-16",
        ]

    def test_nothing_scheduled_in_the_past(self):
        assert all(p.scheduled_at > self.now for p in self.plan)

    def test_open_window_clamped_to_tomorrow(self):
        dating = next(p for p in self.plan if p.milestone_key == "ultrasound:dating")
        assert dating.scheduled_at == datetime(2024, 3, 26, 9, 0)

    def test_future_milestone_on_window_start(self):
        anatomy = next(p for p in self.plan if p.milestone_key == "ultrasound:anatomy")
        assert anatomy.scheduled_at == datetime(2024, 4, 29, 9, 0)

    def test_ordered_by_date_then_priority(self):
        assert _keys(self.plan)[:2] == ["ultrasound:dating", "supplement:week-13"]
        stamps = [p.scheduled_at for p in self.plan]
        assert stamps == sorted(stamps)


def test_first_visit_in_first_trimester():
    now = datetime(2024, 1, 15, 8, 0)
    plan = _plan(now)
    first = next(p for p in plan if p.milestone_key == FIRST_VISIT.key)
    assert first.scheduled_at == datetime(2024, 1, 22, 9, 0)
    assert first.priority == "high"


def test_supplements_stop_at_week_40():
    now = datetime(2024, 9, 16, 10, 0)  # week 38
    plan = _plan(now)
    supplements = [k for k in _keys(plan) if k.startswith("supplement:")]
    assert supplements == ["supplement:week-38", "supplement:week-39", "supplement:week-40"]


def test_past_due_plan_is_empty():
    assert _plan(datetime(2024, 10, 21, 10, 0)) == []


def test_plan_is_deterministic():
    now = datetime(2024, 3, 25, 10, 0)
    assert _plan(now) == _plan(now)
