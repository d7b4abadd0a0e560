"""
Emergency contact use cases.

At most one primary contact per account: promotion demotes every other
contact and promotes the target inside one transaction (backed by a
partial unique index).
"""
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.application.ownership import get_owned
from app.domain.errors import ConflictError, InvalidInputError
from app.infrastructure.db.models import EmergencyContactModel


def list_contacts(db: Session, account_id: int) -> list[EmergencyContactModel]:
    """Primary first, then by name."""
    return db.query(EmergencyContactModel).filter(
        EmergencyContactModel.account_id == account_id,
    ).order_by(
        EmergencyContactModel.is_primary.desc(),
        EmergencyContactModel.name.asc(),
        EmergencyContactModel.id.asc(),
    ).all()


def _demote_others(db: Session, account_id: int, keep_id: int | None) -> None:
    stmt = update(EmergencyContactModel).where(
        EmergencyContactModel.account_id == account_id,
        EmergencyContactModel.is_primary == True,  # noqa: E712
    )
    if keep_id is not None:
        stmt = stmt.where(EmergencyContactModel.id != keep_id)
    db.execute(stmt.values(is_primary=False))


def _commit(db: Session) -> None:
    """Commit; a concurrent promotion tripping the primary index becomes ConflictError"""
    try:
        db.flush()
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Primary contact changed concurrently, retry") from e


class CreateEmergencyContactUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        account_id: int,
        name: str,
        phone: str,
        relationship: str = "",
        is_primary: bool = False,
    ) -> int:
        name = name.strip()
        phone = phone.strip()
        if not name:
            raise InvalidInputError("Contact name cannot be empty")
        if not phone:
            raise InvalidInputError("Contact phone cannot be empty")

        if is_primary:
            _demote_others(self.db, account_id, keep_id=None)
        contact = EmergencyContactModel(
            account_id=account_id,
            name=name,
            phone=phone,
            relationship=relationship.strip(),
            is_primary=is_primary,
        )
        self.db.add(contact)
        _commit(self.db)
        return contact.id


class UpdateEmergencyContactUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, contact_id: int, account_id: int, **changes) -> None:
        contact = get_owned(self.db, EmergencyContactModel, contact_id, account_id, "Contact")

        if "name" in changes:
            name = changes["name"].strip()
            if not name:
                raise InvalidInputError("Contact name cannot be empty")
            contact.name = name
        if "phone" in changes:
            phone = changes["phone"].strip()
            if not phone:
                raise InvalidInputError("Contact phone cannot be empty")
            contact.phone = phone
        if "relationship" in changes:
            contact.relationship = changes["relationship"].strip()
        if "is_primary" in changes:
            if changes["is_primary"]:
                _demote_others(self.db, account_id, keep_id=contact_id)
            contact.is_primary = bool(changes["is_primary"])
        _commit(self.db)


class PromotePrimaryContactUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, contact_id: int, account_id: int) -> None:
        contact = get_owned(self.db, EmergencyContactModel, contact_id, account_id, "Contact")
        if contact.is_primary:
            return
        _demote_others(self.db, account_id, keep_id=contact_id)
        contact.is_primary = True
        _commit(self.db)


class DeleteEmergencyContactUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, contact_id: int, account_id: int) -> None:
        contact = get_owned(self.db, EmergencyContactModel, contact_id, account_id, "Contact")
        self.db.delete(contact)
        self.db.commit()
