"""
Milestone reminder plan derived from the gestational timeline.

Every planned reminder carries a milestone key; (profile, key) is unique in
storage, so the plan can be re-applied at any time without duplicates.
Milestones whose window has already closed for the current week are skipped.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from app.domain.timeline import Timeline, date_for_week

REMINDER_KINDS = {"clinic_visit", "supplement", "vaccination", "ultrasound", "delivery_prep", "custom"}
PRIORITIES = ("low", "medium", "high")
PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}

REMINDER_TIME = time(9, 0)
SUPPLEMENT_WEEKS_AHEAD = 4
FIRST_VISIT_LEAD_DAYS = 7
LAST_WEEK = 40

# WHO antenatal care model: routine contacts after the first visit
ANTENATAL_CONTACT_WEEKS = (20, 26, 30, 34, 36, 38, 40)


@dataclass(frozen=True)
class Milestone:
    key: str
    kind: str
    title: str
    description: str
    start_week: int
    end_week: int
    priority: str


@dataclass(frozen=True)
class PlannedReminder:
    milestone_key: str
    kind: str
    title: str
    description: str
    scheduled_at: datetime
    priority: str


FIRST_VISIT = Milestone(
    "first_antenatal_visit", "clinic_visit", "First Antenatal Visit",
    "Book your first antenatal clinic visit", 1, 12, "high",
)

MILESTONES: tuple[Milestone, ...] = (
    Milestone(
        "ultrasound:dating", "ultrasound", "Dating Ultrasound",
        "Dating scan to confirm gestational age", 11, 14, "high",
    ),
    Milestone(
        "ultrasound:anatomy", "ultrasound", "Anatomy Ultrasound",
        "Mid-pregnancy anatomy scan", 18, 22, "high",
    ),
    Milestone(
        "clinic_visit:glucose_screening", "clinic_visit", "Glucose Screening",
        "Gestational diabetes screening test", 24, 28, "medium",
    ),
    Milestone(
        "vaccination:tdap", "vaccination", "Tdap Vaccination",
        "Whooping cough (Tdap) vaccine", 27, 36, "medium",
    ),
    Milestone(
        "ultrasound:growth", "ultrasound", "Growth Ultrasound",
        "Third trimester growth scan", 32, 34, "medium",
    ),
    Milestone(
        "delivery_prep:hospital_bag", "delivery_prep", "Pack Hospital Bag",
        "Prepare the hospital bag and birth plan", 35, 37, "medium",
    ),
) + tuple(
    Milestone(
        f"clinic_visit:week-{w}", "clinic_visit", f"Antenatal Visit (week {w})",
        "Routine antenatal check-up", w, w, "medium",
    )
    for w in ANTENATAL_CONTACT_WEEKS
)


def _at_reminder_time(d: date) -> datetime:
    return datetime.combine(d, REMINDER_TIME)


def plan_reminders(timeline: Timeline, now: datetime) -> list[PlannedReminder]:
    """Deterministic milestone reminders for the given timeline and moment."""
    week = timeline.current_week
    earliest = now.date() + timedelta(days=1)
    planned: list[PlannedReminder] = []

    if week <= FIRST_VISIT.end_week:
        planned.append(PlannedReminder(
            FIRST_VISIT.key, FIRST_VISIT.kind, FIRST_VISIT.title, FIRST_VISIT.description,
            _at_reminder_time(now.date() + timedelta(days=FIRST_VISIT_LEAD_DAYS)),
            FIRST_VISIT.priority,
        ))

    for m in MILESTONES:
        if week > m.end_week:
            continue
        day = max(date_for_week(timeline.lmp, m.start_week), earliest)
        planned.append(PlannedReminder(
            m.key, m.kind, m.title, m.description, _at_reminder_time(day), m.priority,
        ))

    for w in range(week, min(week + SUPPLEMENT_WEEKS_AHEAD, LAST_WEEK + 1)):
        day = max(date_for_week(timeline.lmp, w), earliest)
        planned.append(PlannedReminder(
            f"supplement:week-{w}", "supplement", "Daily Supplements",
            "Folic acid / iron as advised", _at_reminder_time(day), "medium",
        ))

    planned.sort(key=lambda p: (p.scheduled_at, -PRIORITY_RANK[p.priority], p.milestone_key))
    return planned
