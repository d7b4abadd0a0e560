"""
Content library API endpoints
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_account_id
from app.application.health_content import list_visible_content
from app.infrastructure.db.models import HealthContentModel


router = APIRouter(prefix="/api/v1/content", tags=["content"])


class ContentResponse(BaseModel):
    id: int
    title: str
    content: str
    content_type: str
    trimester: int
    tags: list[str]
    is_premium: bool
    image_url: str | None
    video_url: str | None


def _to_response(c: HealthContentModel) -> ContentResponse:
    return ContentResponse(
        id=c.id,
        title=c.title,
        content=c.content,
        content_type=c.content_type,
        trimester=c.trimester,
        tags=list(c.tags or []),
        is_premium=c.is_premium,
        image_url=c.image_url,
        video_url=c.video_url,
    )


@router.get("/", response_model=list[ContentResponse])
def get_content(
    trimester: int | None = None,
    content_type: str | None = None,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    """Newest first; premium items only on a premium plan"""
    rows = list_visible_content(db, account_id, trimester=trimester, content_type=content_type)
    return [_to_response(c) for c in rows]
