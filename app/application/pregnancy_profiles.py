"""
Pregnancy profile use cases - onboarding, reference date changes, daily refresh.

current_week / trimester are always written in the same transaction as the
reference dates they are derived from. Creating a profile supersedes the
previous active one (marked inactive, never deleted).
"""
from datetime import date, datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.application.ownership import get_owned
from app.application.reminders import SeedRemindersUseCase
from app.domain.errors import ConflictError, InvalidInputError
from app.domain.timeline import compute_timeline
from app.infrastructure.db.models import PregnancyProfileModel

PROFILE_DETAIL_FIELDS = (
    "height_cm", "pre_pregnancy_weight", "current_weight", "previous_pregnancies", "hospital",
)


def get_active_profile(db: Session, account_id: int) -> PregnancyProfileModel | None:
    """Active profile of the account, or None (no profile is not an error)."""
    return db.query(PregnancyProfileModel).filter(
        PregnancyProfileModel.account_id == account_id,
        PregnancyProfileModel.is_active == True,  # noqa: E712
    ).first()


def _check_details(details: dict) -> None:
    unknown = set(details) - set(PROFILE_DETAIL_FIELDS)
    if unknown:
        raise InvalidInputError(f"Unknown profile fields: {', '.join(sorted(unknown))}")


class CreatePregnancyProfileUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        account_id: int,
        now: datetime,
        last_menstrual_period: date | None = None,
        due_date: date | None = None,
        **details,
    ) -> int:
        _check_details(details)
        timeline = compute_timeline(last_menstrual_period, due_date, now.date())

        self.db.execute(
            update(PregnancyProfileModel)
            .where(
                PregnancyProfileModel.account_id == account_id,
                PregnancyProfileModel.is_active == True,  # noqa: E712
            )
            .values(is_active=False)
        )
        profile = PregnancyProfileModel(
            account_id=account_id,
            last_menstrual_period=last_menstrual_period,
            due_date=timeline.due_date,
            current_week=timeline.current_week,
            trimester=timeline.trimester,
            is_active=True,
            **details,
        )
        self.db.add(profile)
        try:
            self.db.flush()
            self.db.commit()
        except IntegrityError as e:
            # another onboarding for this account committed its active profile first
            self.db.rollback()
            raise ConflictError("Active profile changed concurrently, retry") from e

        SeedRemindersUseCase(self.db).execute(account_id, profile.id, now)
        return profile.id


class UpdatePregnancyDatesUseCase:
    """Replace the reference dates; derived fields follow in the same commit."""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        profile_id: int,
        account_id: int,
        now: datetime,
        last_menstrual_period: date | None = None,
        due_date: date | None = None,
    ) -> None:
        profile = get_owned(self.db, PregnancyProfileModel, profile_id, account_id, "Profile")
        timeline = compute_timeline(last_menstrual_period, due_date, now.date())

        profile.last_menstrual_period = last_menstrual_period
        profile.due_date = timeline.due_date
        profile.current_week = timeline.current_week
        profile.trimester = timeline.trimester
        self.db.commit()

        if profile.is_active:
            SeedRemindersUseCase(self.db).execute(account_id, profile.id, now)


class UpdatePregnancyDetailsUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, profile_id: int, account_id: int, **details) -> None:
        _check_details(details)
        profile = get_owned(self.db, PregnancyProfileModel, profile_id, account_id, "Profile")
        for key, value in details.items():
            setattr(profile, key, value)
        self.db.commit()


class RefreshTimelineUseCase:
    """Recompute week / trimester of the active profile for a new day."""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, today: date) -> PregnancyProfileModel | None:
        profile = get_active_profile(self.db, account_id)
        if profile is None:
            return None

        timeline = compute_timeline(profile.last_menstrual_period, profile.due_date, today)
        if (profile.current_week, profile.trimester) != (timeline.current_week, timeline.trimester):
            profile.current_week = timeline.current_week
            profile.trimester = timeline.trimester
            self.db.commit()
        return profile
