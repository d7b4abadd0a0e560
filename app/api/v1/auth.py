"""
Authentication routes (register, login, logout, account profile)
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.auth import get_user_by_email, register_user, update_user_profile, verify_password
from app.domain.errors import UnauthenticatedError
from app.infrastructure.db.models import User
from app.infrastructure.eventlog.repository import EventLogRepository


router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: str
    phone: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class UpdateProfileRequest(BaseModel):
    full_name: str | None = None
    phone: str | None = None


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str | None
    phone: str | None


def _user_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, email=user.email, full_name=user.full_name, phone=user.phone)


@router.post("/register", response_model=UserResponse, status_code=201)
def register(request: Request, req: RegisterRequest, db: Session = Depends(get_db)):
    user = register_user(db, req.email, req.password, req.full_name, req.phone)
    request.session["user_id"] = user.id
    return _user_response(user)


@router.post("/login", response_model=UserResponse)
def login(request: Request, req: LoginRequest, db: Session = Depends(get_db)):
    user = get_user_by_email(db, req.email)
    if not user or not verify_password(req.password, user.password_hash):
        raise UnauthenticatedError("Invalid email or password")

    request.session["user_id"] = user.id

    EventLogRepository(db).append_event(
        account_id=user.id,
        event_type="user_logged_in",
        payload={"email": user.email},
        occurred_at=datetime.now(timezone.utc),
        actor_user_id=user.id,
    )
    db.commit()
    return _user_response(user)


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"success": True}


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return _user_response(user)


@router.patch("/me", response_model=UserResponse)
def update_me(
    req: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Only the fields sent are changed"""
    changes = req.model_dump(exclude_unset=True)
    return _user_response(update_user_profile(db, user, **changes))
