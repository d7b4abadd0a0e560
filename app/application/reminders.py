"""
Reminder use cases - milestone seeding, custom reminders, completion, reschedule.

Reminders are scheduled data, not timers: delivery is handled elsewhere
(see reminder_notifications.send_reminder_sms).
"""
import logging
from datetime import datetime

from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.application.ownership import get_owned
from app.domain.errors import AlreadyCompletedError, InvalidInputError, InvalidStateError
from app.domain.reminder_plan import PRIORITIES, PRIORITY_RANK, plan_reminders
from app.domain.timeline import compute_timeline
from app.infrastructure.db.models import PregnancyProfileModel, ReminderModel

logger = logging.getLogger(__name__)

_priority_order = case(
    *[(ReminderModel.priority == p, rank) for p, rank in PRIORITY_RANK.items()],
    else_=0,
)


def _ordered(query):
    """scheduled_at ASC, priority DESC (high > medium > low), creation order."""
    return query.order_by(
        ReminderModel.scheduled_at.asc(),
        _priority_order.desc(),
        ReminderModel.id.asc(),
    )


def list_upcoming(
    db: Session,
    account_id: int,
    now: datetime,
    profile_id: int | None = None,
    limit: int | None = None,
) -> list[ReminderModel]:
    q = db.query(ReminderModel).filter(
        ReminderModel.account_id == account_id,
        ReminderModel.completed == False,  # noqa: E712
        ReminderModel.scheduled_at >= now,
    )
    if profile_id is not None:
        q = q.filter(ReminderModel.profile_id == profile_id)
    q = _ordered(q)
    if limit is not None:
        q = q.limit(limit)
    return q.all()


def list_reminders(db: Session, account_id: int, profile_id: int | None = None) -> list[ReminderModel]:
    q = db.query(ReminderModel).filter(ReminderModel.account_id == account_id)
    if profile_id is not None:
        q = q.filter(ReminderModel.profile_id == profile_id)
    return _ordered(q).all()


class SeedRemindersUseCase:
    """
    Apply the milestone plan to a profile.

    Idempotent per (profile_id, milestone_key): existing milestone reminders
    are left untouched (including their scheduled_at). Returns every
    milestone reminder of the profile.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, profile_id: int, now: datetime) -> list[ReminderModel]:
        profile = get_owned(self.db, PregnancyProfileModel, profile_id, account_id, "Profile")
        timeline = compute_timeline(profile.last_menstrual_period, profile.due_date, now.date())
        plan = plan_reminders(timeline, now)

        for attempt in (1, 2):
            existing = {
                key for (key,) in self.db.query(ReminderModel.milestone_key).filter(
                    ReminderModel.profile_id == profile_id,
                    ReminderModel.milestone_key != None,  # noqa: E711
                )
            }
            for p in plan:
                if p.milestone_key in existing:
                    continue
                self.db.add(ReminderModel(
                    account_id=account_id,
                    profile_id=profile_id,
                    kind=p.kind,
                    title=p.title,
                    description=p.description,
                    milestone_key=p.milestone_key,
                    scheduled_at=p.scheduled_at,
                    priority=p.priority,
                ))
            try:
                self.db.commit()
                break
            except IntegrityError:
                # A concurrent seed inserted some of the same milestones
                self.db.rollback()
                if attempt == 2:
                    raise
                logger.info("Concurrent reminder seed for profile_id=%d, re-reading", profile_id)

        return _ordered(self.db.query(ReminderModel).filter(
            ReminderModel.profile_id == profile_id,
            ReminderModel.milestone_key != None,  # noqa: E711
        )).all()


class CreateCustomReminderUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        account_id: int,
        profile_id: int,
        title: str,
        scheduled_at: datetime,
        priority: str = "medium",
        description: str | None = None,
    ) -> int:
        title = title.strip()
        if not title:
            raise InvalidInputError("Reminder title cannot be empty")
        if priority not in PRIORITIES:
            raise InvalidInputError(f"Invalid priority: {priority}")
        get_owned(self.db, PregnancyProfileModel, profile_id, account_id, "Profile")

        reminder = ReminderModel(
            account_id=account_id,
            profile_id=profile_id,
            kind="custom",
            title=title,
            description=(description or "").strip() or None,
            scheduled_at=scheduled_at,
            priority=priority,
        )
        self.db.add(reminder)
        self.db.flush()
        self.db.commit()
        return reminder.id


class CompleteReminderUseCase:
    """
    completed: False -> True, stamping completed_at.

    The transition is a conditional UPDATE on completed = false, so a second
    call (or a concurrent one) changes nothing and raises
    AlreadyCompletedError carrying the stored reminder.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, reminder_id: int, account_id: int, now: datetime) -> ReminderModel:
        reminder = get_owned(self.db, ReminderModel, reminder_id, account_id, "Reminder")

        result = self.db.execute(
            update(ReminderModel)
            .where(
                ReminderModel.id == reminder_id,
                ReminderModel.completed == False,  # noqa: E712
            )
            .values(completed=True, completed_at=now)
        )
        if result.rowcount == 0:
            self.db.rollback()
            self.db.refresh(reminder)
            raise AlreadyCompletedError(f"Reminder #{reminder_id} is already completed", reminder)

        self.db.commit()
        self.db.refresh(reminder)
        return reminder


class RescheduleReminderUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, reminder_id: int, account_id: int, new_date: datetime) -> ReminderModel:
        reminder = get_owned(self.db, ReminderModel, reminder_id, account_id, "Reminder")

        result = self.db.execute(
            update(ReminderModel)
            .where(
                ReminderModel.id == reminder_id,
                ReminderModel.completed == False,  # noqa: E712
            )
            .values(scheduled_at=new_date)
        )
        if result.rowcount == 0:
            self.db.rollback()
            raise InvalidStateError("Only pending reminders can be rescheduled")

        self.db.commit()
        self.db.refresh(reminder)
        return reminder
