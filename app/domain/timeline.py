"""
Gestational timeline calculation.

Convention: 40 weeks (280 days) from the first day of the last menstrual
period (LMP) to the estimated due date.

Trimesters:
  1 - weeks 1..12
  2 - weeks 13..26
  3 - week 27 onwards
"""
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from app.domain.errors import InvalidInputError

PREGNANCY_DAYS = 280
FIRST_TRIMESTER_LAST_WEEK = 12
SECOND_TRIMESTER_LAST_WEEK = 26


@dataclass(frozen=True)
class Timeline:
    lmp: date
    due_date: date
    current_week: int
    trimester: int


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def trimester_for_week(week: int) -> int:
    if week <= FIRST_TRIMESTER_LAST_WEEK:
        return 1
    if week <= SECOND_TRIMESTER_LAST_WEEK:
        return 2
    return 3


def date_for_week(lmp: date, week: int) -> date:
    """First day of the given gestational week."""
    return add_days(lmp, (week - 1) * 7)


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, datetime.min.time())


def _elapsed_days(start: date | datetime, end: date | datetime) -> int:
    """Whole days from start to end, partial days rounded up."""
    delta = _as_datetime(end) - _as_datetime(start)
    return math.ceil(delta.total_seconds() / 86400)


def compute_timeline(
    lmp: date | datetime | None,
    explicit_due_date: date | None,
    today: date | datetime,
) -> Timeline:
    """
    Derive current week, trimester and due date.

    Raises:
        InvalidInputError: both reference dates missing, or today before LMP
    """
    if lmp is None and explicit_due_date is None:
        raise InvalidInputError("Either last menstrual period or due date is required")

    if isinstance(explicit_due_date, datetime):
        explicit_due_date = explicit_due_date.date()

    if lmp is None:
        lmp = add_days(explicit_due_date, -PREGNANCY_DAYS)

    if _as_datetime(today) < _as_datetime(lmp):
        raise InvalidInputError("Last menstrual period cannot be in the future")

    elapsed = _elapsed_days(lmp, today)
    lmp_day = lmp.date() if isinstance(lmp, datetime) else lmp
    due_date = explicit_due_date or add_days(lmp_day, PREGNANCY_DAYS)

    current_week = max(1, elapsed // 7 + 1)
    return Timeline(
        lmp=lmp_day,
        due_date=due_date,
        current_week=current_week,
        trimester=trimester_for_week(current_week),
    )
