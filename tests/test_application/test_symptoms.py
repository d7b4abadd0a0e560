"""Tests for symptom log use cases"""
from datetime import date, datetime

import pytest

from app.application.symptoms import (
    LogSymptomUseCase, UpdateSymptomUseCase, ResolveSymptomUseCase, list_recent_symptoms,
)
from app.domain.errors import InvalidInputError, InvalidStateError, NotOwnedError
from app.infrastructure.db.models import SymptomLogModel


def _log(db, account_id, symptom, on_date, severity="mild"):
    return LogSymptomUseCase(db).execute(account_id, symptom, severity, on_date)


def test_log_symptom(db_session, sample_account_id):
    symptom_id = LogSymptomUseCase(db_session).execute(
        sample_account_id, " Nausea ", "moderate", date(2024, 3, 20), description="  mornings ",
    )
    s = db_session.get(SymptomLogModel, symptom_id)
    assert s.symptom == "Nausea"
    assert s.description == "mornings"
    assert s.resolved is False


def test_invalid_severity(db_session, sample_account_id):
    with pytest.raises(InvalidInputError):
        _log(db_session, sample_account_id, "Headache", date(2024, 3, 20), severity="extreme")


def test_recent_newest_first_with_limit(db_session, sample_account_id, other_account_id):
    for day in range(1, 8):
        _log(db_session, sample_account_id, f"Symptom {day}", date(2024, 3, day))
    _log(db_session, other_account_id, "Other", date(2024, 3, 30))

    recent = list_recent_symptoms(db_session, sample_account_id, limit=5)

    assert [s.symptom for s in recent] == [f"Symptom {d}" for d in (7, 6, 5, 4, 3)]


def test_update_severity(db_session, sample_account_id):
    symptom_id = _log(db_session, sample_account_id, "Back pain", date(2024, 3, 20))

    UpdateSymptomUseCase(db_session).execute(symptom_id, sample_account_id, severity="severe")

    assert db_session.get(SymptomLogModel, symptom_id).severity == "severe"


class TestResolve:
    def test_resolve(self, db_session, sample_account_id):
        symptom_id = _log(db_session, sample_account_id, "Swelling", date(2024, 3, 20))
        at = datetime(2024, 3, 22, 9, 0)

        ResolveSymptomUseCase(db_session).execute(symptom_id, sample_account_id, at)

        s = db_session.get(SymptomLogModel, symptom_id)
        assert s.resolved is True
        assert s.resolved_at == at

    def test_twice(self, db_session, sample_account_id):
        symptom_id = _log(db_session, sample_account_id, "Swelling", date(2024, 3, 20))
        uc = ResolveSymptomUseCase(db_session)
        uc.execute(symptom_id, sample_account_id, datetime(2024, 3, 22))
        with pytest.raises(InvalidStateError):
            uc.execute(symptom_id, sample_account_id, datetime(2024, 3, 23))

    def test_other_account(self, db_session, sample_account_id, other_account_id):
        symptom_id = _log(db_session, sample_account_id, "Swelling", date(2024, 3, 20))
        with pytest.raises(NotOwnedError):
            ResolveSymptomUseCase(db_session).execute(symptom_id, other_account_id, datetime(2024, 3, 22))
