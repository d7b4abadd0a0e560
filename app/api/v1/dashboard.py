"""
Dashboard API endpoints
"""
from dataclasses import asdict
from datetime import date, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_account_id, get_now
from app.application.dashboard import DashboardService, LocalSource, PersistedSource


router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


class LocalContact(BaseModel):
    name: str
    phone: str
    relationship: str = ""
    isPrimary: bool = False


class LocalSetupRequest(BaseModel):
    """Onboarding payload kept on the client before sign-up"""
    lastPeriod: date | None = None
    dueDate: date | None = None
    hospital: str | None = None
    emergencyContacts: list[LocalContact] = []


@router.get("/")
def dashboard(
    account_id: int = Depends(get_current_account_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    view = DashboardService(db).build_dashboard(PersistedSource(account_id), now)
    return asdict(view)


@router.post("/local")
def local_dashboard(req: LocalSetupRequest, now: datetime = Depends(get_now)):
    """Dashboard built from the onboarding payload only (no store access)"""
    view = DashboardService().build_dashboard(LocalSource(req.model_dump()), now)
    return asdict(view)
