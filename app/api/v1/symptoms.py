"""
Symptom log API endpoints
"""
from datetime import date as date_type, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_account_id, get_now
from app.application.ownership import get_owned
from app.application.pregnancy_profiles import get_active_profile
from app.application.symptoms import (
    LogSymptomUseCase, UpdateSymptomUseCase, ResolveSymptomUseCase, list_recent_symptoms,
)
from app.infrastructure.db.models import SymptomLogModel


router = APIRouter(prefix="/api/v1/symptoms", tags=["symptoms"])


class LogSymptomRequest(BaseModel):
    symptom: str
    severity: str  # mild/moderate/severe
    date: date_type | None = None  # defaults to today
    description: str | None = None


class UpdateSymptomRequest(BaseModel):
    severity: str | None = None
    description: str | None = None


class SymptomResponse(BaseModel):
    id: int
    symptom: str
    severity: str
    description: str | None
    date: date_type
    resolved: bool
    resolved_at: datetime | None


def _to_response(s: SymptomLogModel) -> SymptomResponse:
    return SymptomResponse(
        id=s.id,
        symptom=s.symptom,
        severity=s.severity,
        description=s.description,
        date=s.date,
        resolved=s.resolved,
        resolved_at=s.resolved_at,
    )


@router.get("/", response_model=list[SymptomResponse])
def recent_symptoms(
    limit: int = 20,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    return [_to_response(s) for s in list_recent_symptoms(db, account_id, limit=limit)]


@router.post("/", response_model=SymptomResponse, status_code=201)
def log_symptom(
    req: LogSymptomRequest,
    account_id: int = Depends(get_current_account_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    profile = get_active_profile(db, account_id)
    symptom_id = LogSymptomUseCase(db).execute(
        account_id=account_id,
        symptom=req.symptom,
        severity=req.severity,
        on_date=req.date or now.date(),
        description=req.description,
        profile_id=profile.id if profile else None,
    )
    return _to_response(db.get(SymptomLogModel, symptom_id))


@router.patch("/{symptom_id}", response_model=SymptomResponse)
def update_symptom(
    symptom_id: int,
    req: UpdateSymptomRequest,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    UpdateSymptomUseCase(db).execute(symptom_id, account_id, **req.model_dump(exclude_unset=True))
    return _to_response(get_owned(db, SymptomLogModel, symptom_id, account_id, "Symptom"))


@router.post("/{symptom_id}/resolve", response_model=SymptomResponse)
def resolve_symptom(
    symptom_id: int,
    account_id: int = Depends(get_current_account_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    ResolveSymptomUseCase(db).execute(symptom_id, account_id, now)
    return _to_response(get_owned(db, SymptomLogModel, symptom_id, account_id, "Symptom"))
