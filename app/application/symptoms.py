"""Symptom log use cases."""
from datetime import date, datetime

from sqlalchemy.orm import Session

from app.application.ownership import get_owned
from app.domain.errors import InvalidInputError, InvalidStateError
from app.infrastructure.db.models import SymptomLogModel

SEVERITIES = ("mild", "moderate", "severe")


def list_recent_symptoms(
    db: Session,
    account_id: int,
    limit: int = 5,
    profile_id: int | None = None,
) -> list[SymptomLogModel]:
    q = db.query(SymptomLogModel).filter(SymptomLogModel.account_id == account_id)
    if profile_id is not None:
        q = q.filter(SymptomLogModel.profile_id == profile_id)
    return q.order_by(SymptomLogModel.date.desc(), SymptomLogModel.id.desc()).limit(limit).all()


class LogSymptomUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        account_id: int,
        symptom: str,
        severity: str,
        on_date: date,
        description: str | None = None,
        profile_id: int | None = None,
    ) -> int:
        symptom = symptom.strip()
        if not symptom:
            raise InvalidInputError("Symptom cannot be empty")
        if severity not in SEVERITIES:
            raise InvalidInputError(f"Invalid severity: {severity}")

        row = SymptomLogModel(
            account_id=account_id,
            profile_id=profile_id,
            symptom=symptom,
            severity=severity,
            description=(description or "").strip() or None,
            date=on_date,
        )
        self.db.add(row)
        self.db.flush()
        self.db.commit()
        return row.id


class UpdateSymptomUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, symptom_id: int, account_id: int, **changes) -> None:
        row = get_owned(self.db, SymptomLogModel, symptom_id, account_id, "Symptom")
        if "severity" in changes:
            if changes["severity"] not in SEVERITIES:
                raise InvalidInputError(f"Invalid severity: {changes['severity']}")
            row.severity = changes["severity"]
        if "description" in changes:
            row.description = (changes["description"] or "").strip() or None
        self.db.commit()


class ResolveSymptomUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, symptom_id: int, account_id: int, now: datetime) -> None:
        row = get_owned(self.db, SymptomLogModel, symptom_id, account_id, "Symptom")
        if row.resolved:
            raise InvalidStateError("Symptom is already resolved")
        row.resolved = True
        row.resolved_at = now
        self.db.commit()
