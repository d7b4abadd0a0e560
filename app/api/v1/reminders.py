"""
Reminder API endpoints
"""
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_account_id, get_current_user, get_now
from app.application.reminder_notifications import SendReminderSmsUseCase
from app.application.reminders import (
    CreateCustomReminderUseCase, CompleteReminderUseCase, RescheduleReminderUseCase,
    SeedRemindersUseCase, list_reminders, list_upcoming,
)
from app.domain.errors import AlreadyCompletedError, InvalidInputError
from app.infrastructure.db.models import ReminderModel, User


router = APIRouter(prefix="/api/v1/reminders", tags=["reminders"])


# === Request/Response models ===

class CreateReminderRequest(BaseModel):
    profile_id: int
    title: str
    scheduled_at: datetime
    priority: str = "medium"  # low/medium/high
    description: str | None = None


class RescheduleRequest(BaseModel):
    scheduled_at: datetime


class SendSmsRequest(BaseModel):
    phone: str | None = None  # defaults to the account phone


class ReminderResponse(BaseModel):
    id: int
    profile_id: int
    kind: str
    title: str
    description: str | None
    milestone_key: str | None
    scheduled_at: datetime
    priority: str
    completed: bool
    completed_at: datetime | None
    notification_sent: bool


class SmsResultResponse(BaseModel):
    success: bool
    error: str | None = None


def _to_response(r: ReminderModel) -> ReminderResponse:
    return ReminderResponse(
        id=r.id,
        profile_id=r.profile_id,
        kind=r.kind,
        title=r.title,
        description=r.description,
        milestone_key=r.milestone_key,
        scheduled_at=r.scheduled_at,
        priority=r.priority,
        completed=r.completed,
        completed_at=r.completed_at,
        notification_sent=r.notification_sent,
    )


# === Endpoints ===

@router.get("/", response_model=list[ReminderResponse])
def get_reminders(
    profile_id: int | None = None,
    upcoming: bool = False,
    account_id: int = Depends(get_current_account_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """All reminders, or only pending future ones with ?upcoming=true"""
    if upcoming:
        rows = list_upcoming(db, account_id, now, profile_id=profile_id)
    else:
        rows = list_reminders(db, account_id, profile_id=profile_id)
    return [_to_response(r) for r in rows]


@router.post("/", response_model=ReminderResponse, status_code=201)
def create_reminder(
    req: CreateReminderRequest,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    reminder_id = CreateCustomReminderUseCase(db).execute(
        account_id=account_id,
        profile_id=req.profile_id,
        title=req.title,
        scheduled_at=req.scheduled_at,
        priority=req.priority,
        description=req.description,
    )
    return _to_response(db.get(ReminderModel, reminder_id))


@router.post("/seed/{profile_id}", response_model=list[ReminderResponse])
def seed_reminders(
    profile_id: int,
    account_id: int = Depends(get_current_account_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Apply the milestone plan (idempotent)"""
    return [_to_response(r) for r in SeedRemindersUseCase(db).execute(account_id, profile_id, now)]


@router.post("/{reminder_id}/complete", response_model=ReminderResponse)
def complete_reminder(
    reminder_id: int,
    account_id: int = Depends(get_current_account_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Mark done; a repeat gets 409 with the stored reminder for read-back"""
    try:
        reminder = CompleteReminderUseCase(db).execute(reminder_id, account_id, now)
    except AlreadyCompletedError as e:
        return JSONResponse(status_code=409, content={
            "detail": str(e),
            "error": type(e).__name__,
            "retryable": e.retryable,
            "reminder": _to_response(e.entity).model_dump(mode="json"),
        })
    return _to_response(reminder)


@router.post("/{reminder_id}/reschedule", response_model=ReminderResponse)
def reschedule_reminder(
    reminder_id: int,
    req: RescheduleRequest,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    return _to_response(RescheduleReminderUseCase(db).execute(reminder_id, account_id, req.scheduled_at))


@router.post("/{reminder_id}/sms", response_model=SmsResultResponse)
def send_reminder_sms(
    reminder_id: int,
    req: SendSmsRequest,
    user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    phone = req.phone or user.phone
    if not phone:
        raise InvalidInputError("No phone number on the account")
    result = SendReminderSmsUseCase(db).execute(reminder_id, user.id, phone, now)
    return SmsResultResponse(success=result.success, error=result.error)
