"""
FastAPI dependencies (DB session, authentication)
"""
from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.config import get_settings
from app.domain.errors import UnauthenticatedError
from app.infrastructure.db.session import get_db as _get_db
from app.infrastructure.db.models import User


# Re-export get_db for routers
get_db = _get_db


def get_current_account_id(request: Request) -> int:
    """
    Account id of the logged-in user (session cookie).

    Raises:
        UnauthenticatedError: no user in session
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise UnauthenticatedError("Not authenticated")
    return int(user_id)


def get_current_user(
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
) -> User:
    """
    Usage:
        @router.get("/me")
        def me(user: User = Depends(get_current_user)):
            ...
    """
    user = db.query(User).filter(User.id == account_id).first()
    if not user:
        raise UnauthenticatedError("User not found")
    return user


def get_now() -> datetime:
    """Current wall-clock time in the configured timezone (naive, like stored reminder times)."""
    return datetime.now(ZoneInfo(get_settings().TIMEZONE)).replace(tzinfo=None)
