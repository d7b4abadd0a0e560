"""Owner-scoped row lookup shared by the use cases."""
from typing import TypeVar

from sqlalchemy.orm import Session

from app.domain.errors import NotFoundError, NotOwnedError

M = TypeVar("M")


def get_owned(db: Session, model: type[M], entity_id: int, account_id: int, label: str) -> M:
    """
    Load a row by primary key and check it belongs to account_id.

    Raises:
        NotFoundError: no such row
        NotOwnedError: row belongs to another account
    """
    row = db.get(model, entity_id)
    if row is None:
        raise NotFoundError(f"{label} #{entity_id} not found")
    if row.account_id != account_id:
        raise NotOwnedError(f"{label} #{entity_id} does not belong to this account")
    return row
