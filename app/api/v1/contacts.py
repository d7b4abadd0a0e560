"""
Emergency contact API endpoints
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_account_id
from app.application.emergency_contacts import (
    CreateEmergencyContactUseCase, UpdateEmergencyContactUseCase,
    PromotePrimaryContactUseCase, DeleteEmergencyContactUseCase, list_contacts,
)
from app.infrastructure.db.models import EmergencyContactModel


router = APIRouter(prefix="/api/v1/contacts", tags=["contacts"])


class CreateContactRequest(BaseModel):
    name: str
    phone: str
    relationship: str = ""
    is_primary: bool = False


class UpdateContactRequest(BaseModel):
    name: str | None = None
    phone: str | None = None
    relationship: str | None = None
    is_primary: bool | None = None


class ContactResponse(BaseModel):
    id: int
    name: str
    phone: str
    relationship: str
    is_primary: bool


def _to_response(c: EmergencyContactModel) -> ContactResponse:
    return ContactResponse(id=c.id, name=c.name, phone=c.phone, relationship=c.relationship, is_primary=c.is_primary)


@router.get("/", response_model=list[ContactResponse])
def get_contacts(account_id: int = Depends(get_current_account_id), db: Session = Depends(get_db)):
    """Primary first, then by name"""
    return [_to_response(c) for c in list_contacts(db, account_id)]


@router.post("/", response_model=ContactResponse, status_code=201)
def create_contact(
    req: CreateContactRequest,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    contact_id = CreateEmergencyContactUseCase(db).execute(
        account_id=account_id,
        name=req.name,
        phone=req.phone,
        relationship=req.relationship,
        is_primary=req.is_primary,
    )
    return _to_response(db.get(EmergencyContactModel, contact_id))


@router.patch("/{contact_id}", response_model=ContactResponse)
def update_contact(
    contact_id: int,
    req: UpdateContactRequest,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    changes = req.model_dump(exclude_unset=True, exclude_none=True)
    UpdateEmergencyContactUseCase(db).execute(contact_id, account_id, **changes)
    return _to_response(db.get(EmergencyContactModel, contact_id))


@router.post("/{contact_id}/promote", response_model=list[ContactResponse])
def promote_contact(
    contact_id: int,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    """Make this the only primary contact"""
    PromotePrimaryContactUseCase(db).execute(contact_id, account_id)
    return [_to_response(c) for c in list_contacts(db, account_id)]


@router.delete("/{contact_id}")
def delete_contact(
    contact_id: int,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    DeleteEmergencyContactUseCase(db).execute(contact_id, account_id)
    return {"success": True}
