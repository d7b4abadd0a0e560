"""
Content library queries. Premium items are visible only to accounts whose
active subscription is premium.
"""
from sqlalchemy.orm import Session

from app.application.subscriptions import get_active_subscription
from app.domain.errors import InvalidInputError
from app.infrastructure.db.models import HealthContentModel

CONTENT_TYPES = {"nutrition", "exercise", "mental_health", "general", "emergency"}


def list_content(
    db: Session,
    trimester: int | None = None,
    content_type: str | None = None,
    is_premium: bool | None = None,
    limit: int | None = None,
) -> list[HealthContentModel]:
    """Newest first."""
    if content_type is not None and content_type not in CONTENT_TYPES:
        raise InvalidInputError(f"Unknown content type: {content_type}")

    q = db.query(HealthContentModel)
    if trimester is not None:
        q = q.filter(HealthContentModel.trimester == trimester)
    if content_type is not None:
        q = q.filter(HealthContentModel.content_type == content_type)
    if is_premium is not None:
        q = q.filter(HealthContentModel.is_premium == is_premium)
    q = q.order_by(HealthContentModel.created_at.desc(), HealthContentModel.id.desc())
    if limit is not None:
        q = q.limit(limit)
    return q.all()


def list_visible_content(
    db: Session,
    account_id: int,
    trimester: int | None = None,
    content_type: str | None = None,
) -> list[HealthContentModel]:
    """Content the account may read: premium items only on a premium plan."""
    subscription = get_active_subscription(db, account_id)
    return list_content(
        db,
        trimester=trimester,
        content_type=content_type,
        is_premium=None if subscription.is_premium else False,
    )
