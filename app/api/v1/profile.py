"""
Pregnancy profile API endpoints
"""
from datetime import date, datetime
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_account_id, get_now
from app.application.ownership import get_owned
from app.application.pregnancy_profiles import (
    CreatePregnancyProfileUseCase, UpdatePregnancyDatesUseCase,
    UpdatePregnancyDetailsUseCase, RefreshTimelineUseCase, get_active_profile,
)
from app.infrastructure.db.models import PregnancyProfileModel


router = APIRouter(prefix="/api/v1/profile", tags=["profile"])


# === Request/Response models ===

class ProfileDetails(BaseModel):
    height_cm: Decimal | None = None
    pre_pregnancy_weight: Decimal | None = None
    current_weight: Decimal | None = None
    previous_pregnancies: int | None = None
    hospital: str | None = None


class CreateProfileRequest(ProfileDetails):
    last_menstrual_period: date | None = None
    due_date: date | None = None


class UpdateDatesRequest(BaseModel):
    last_menstrual_period: date | None = None
    due_date: date | None = None


class ProfileResponse(BaseModel):
    id: int
    last_menstrual_period: date | None
    due_date: date | None
    current_week: int
    trimester: int
    is_active: bool
    height_cm: Decimal | None
    pre_pregnancy_weight: Decimal | None
    current_weight: Decimal | None
    previous_pregnancies: int | None
    hospital: str | None


def _to_response(p: PregnancyProfileModel) -> ProfileResponse:
    return ProfileResponse(
        id=p.id,
        last_menstrual_period=p.last_menstrual_period,
        due_date=p.due_date,
        current_week=p.current_week,
        trimester=p.trimester,
        is_active=p.is_active,
        height_cm=p.height_cm,
        pre_pregnancy_weight=p.pre_pregnancy_weight,
        current_weight=p.current_weight,
        previous_pregnancies=p.previous_pregnancies,
        hospital=p.hospital,
    )


# === Endpoints ===

@router.post("/", response_model=ProfileResponse, status_code=201)
def create_profile(
    req: CreateProfileRequest,
    account_id: int = Depends(get_current_account_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Onboarding: supersedes the previous active profile and seeds reminders"""
    details = req.model_dump(include=set(ProfileDetails.model_fields), exclude_none=True)
    profile_id = CreatePregnancyProfileUseCase(db).execute(
        account_id=account_id,
        now=now,
        last_menstrual_period=req.last_menstrual_period,
        due_date=req.due_date,
        **details,
    )
    return _to_response(db.get(PregnancyProfileModel, profile_id))


@router.get("/", response_model=ProfileResponse | None)
def active_profile(
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    profile = get_active_profile(db, account_id)
    return _to_response(profile) if profile else None


@router.put("/{profile_id}/dates", response_model=ProfileResponse)
def update_dates(
    profile_id: int,
    req: UpdateDatesRequest,
    account_id: int = Depends(get_current_account_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    UpdatePregnancyDatesUseCase(db).execute(
        profile_id, account_id, now,
        last_menstrual_period=req.last_menstrual_period,
        due_date=req.due_date,
    )
    return _to_response(get_owned(db, PregnancyProfileModel, profile_id, account_id, "Profile"))


@router.patch("/{profile_id}", response_model=ProfileResponse)
def update_details(
    profile_id: int,
    req: ProfileDetails,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    UpdatePregnancyDetailsUseCase(db).execute(profile_id, account_id, **req.model_dump(exclude_unset=True))
    return _to_response(get_owned(db, PregnancyProfileModel, profile_id, account_id, "Profile"))


@router.post("/refresh", response_model=ProfileResponse | None)
def refresh_timeline(
    account_id: int = Depends(get_current_account_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Recompute week / trimester of the active profile for today"""
    profile = RefreshTimelineUseCase(db).execute(account_id, now.date())
    return _to_response(profile) if profile else None
