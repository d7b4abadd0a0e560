"""Tests for the dashboard aggregator (persisted and local sources)"""
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.application.dashboard import DashboardService, LocalSource, PersistedSource
from app.application.emergency_contacts import CreateEmergencyContactUseCase
from app.application.pregnancy_profiles import CreatePregnancyProfileUseCase
from app.application.symptoms import LogSymptomUseCase
from app.domain.errors import InvalidInputError, NotFoundError
from app.infrastructure.db.models import HealthContentModel, PregnancyProfileModel, SubscriptionModel


@pytest.fixture
def populated(db_session, sample_account_id, now):
    CreatePregnancyProfileUseCase(db_session).execute(
        sample_account_id, now, last_menstrual_period=date(2024, 1, 1),
    )
    for day in range(10, 17):
        LogSymptomUseCase(db_session).execute(sample_account_id, f"Nausea {day}", "mild", date(2024, 3, day))
    contacts = CreateEmergencyContactUseCase(db_session)
    contacts.execute(sample_account_id, "Baraka", "+254700000001")
    contacts.execute(sample_account_id, "Achieng", "+254700000002", is_primary=True)
    db_session.add_all([
        HealthContentModel(title=f"Second trimester tip {i}", content="...", content_type="general", trimester=2)
        for i in range(4)
    ] + [
        HealthContentModel(title="Premium yoga", content="...", content_type="exercise", trimester=2, is_premium=True),
        HealthContentModel(title="First trimester tip", content="...", content_type="general", trimester=1),
    ])
    db_session.commit()
    return sample_account_id


class TestPersisted:
    def test_full_view(self, db_session, populated, now):
        view = DashboardService(db_session).build_dashboard(PersistedSource(populated), now)

        assert view.source == "persisted"
        assert view.profile["current_week"] == 13
        assert view.profile["trimester"] == 2
        assert view.profile["due_date"] == date(2024, 10, 7)

        assert len(view.upcoming_reminders) == 5
        assert view.upcoming_reminders[0]["title"] == "Dating Ultrasound"

        assert [s["symptom"] for s in view.recent_symptoms] == [f"Nausea {d}" for d in (16, 15, 14, 13, 12)]

        assert len(view.health_content) == 3
        assert all("Second trimester" in c["title"] for c in view.health_content)

        assert [c["name"] for c in view.emergency_contacts] == ["Achieng", "Baraka"]
        assert view.emergency_contacts[0]["is_primary"] is True

        assert view.subscription["plan_type"] == "free"

    def test_timeline_is_fresh_and_read_only(self, db_session, populated):
        later = datetime(2024, 7, 1, 10, 0)

        view = DashboardService(db_session).build_dashboard(PersistedSource(populated), later)

        assert view.profile["current_week"] == 27
        assert view.profile["trimester"] == 3
        stored = db_session.query(PregnancyProfileModel).one()
        assert stored.current_week == 13

    def test_premium_subscription(self, db_session, populated, now):
        db_session.add(SubscriptionModel(
            account_id=populated, plan_type="premium", status="active",
            amount=Decimal("500"), currency="KES", start_date=date(2024, 3, 1),
        ))
        db_session.commit()

        view = DashboardService(db_session).build_dashboard(PersistedSource(populated), now)

        assert view.subscription["plan_type"] == "premium"
        assert view.subscription["amount"] == Decimal("500")

    def test_empty_account(self, db_session, sample_account_id, now):
        db_session.add(HealthContentModel(title="Welcome", content="...", content_type="general", trimester=1))
        db_session.commit()

        view = DashboardService(db_session).build_dashboard(PersistedSource(sample_account_id), now)

        assert view.profile is None
        assert view.upcoming_reminders == []
        assert view.recent_symptoms == []
        assert [c["title"] for c in view.health_content] == ["Welcome"]
        assert view.emergency_contacts == []
        assert (view.subscription["plan_type"], view.subscription["status"]) == ("free", "active")

    def test_unknown_owner(self, db_session, now):
        with pytest.raises(NotFoundError):
            DashboardService(db_session).build_dashboard(PersistedSource(999), now)

    def test_failed_block_defaults_to_empty(self, db_session, populated, now):
        error = OperationalError("SELECT symptom_logs", {}, Exception("connection reset"))
        with patch("app.application.dashboard.list_recent_symptoms", side_effect=error):
            view = DashboardService(db_session).build_dashboard(PersistedSource(populated), now)

        assert view.recent_symptoms == []
        assert view.profile["current_week"] == 13
        assert len(view.upcoming_reminders) == 5
        assert len(view.emergency_contacts) == 2

    def test_failed_subscription_falls_back_to_free(self, db_session, populated, now):
        error = OperationalError("SELECT subscriptions", {}, Exception("timeout"))
        with patch("app.application.dashboard.get_active_subscription", side_effect=error):
            view = DashboardService(db_session).build_dashboard(PersistedSource(populated), now)

        assert view.subscription["plan_type"] == "free"
        assert len(view.health_content) == 3


class TestLocal:
    setup = {
        "lastPeriod": "2024-01-01",
        "hospital": "Aga Khan Hospital",
        "emergencyContacts": [
            {"name": "Baraka", "phone": "+254700000001", "relationship": "brother"},
            {"name": "Achieng", "phone": "+254700000002", "relationship": "sister", "isPrimary": True},
            {"name": "Otieno", "phone": "+254700000003", "isPrimary": True},
        ],
    }

    def test_builds_without_store(self, now):
        view = DashboardService().build_dashboard(LocalSource(self.setup), now)

        assert view.source == "local"
        assert view.profile["current_week"] == 13
        assert view.profile["due_date"] == date(2024, 10, 7)
        assert [r["title"] for r in view.upcoming_reminders][:2] == ["Dating Ultrasound", "Daily Supplements"]
        assert len(view.upcoming_reminders) == 5
        assert view.recent_symptoms == []
        assert view.health_content == []
        assert view.subscription["plan_type"] == "free"

    def test_single_primary_contact_first(self, now):
        view = DashboardService().build_dashboard(LocalSource(self.setup), now)

        contacts = view.emergency_contacts
        assert contacts[0]["name"] == "Achieng"
        assert [c["is_primary"] for c in contacts] == [True, False, False]

    def test_first_visit_mentions_hospital(self):
        early = datetime(2024, 1, 15, 8, 0)
        view = DashboardService().build_dashboard(LocalSource(self.setup), early)

        first = next(r for r in view.upcoming_reminders if r["id"] == "local-first_antenatal_visit")
        assert first["description"] == "Preferred hospital: Aga Khan Hospital"

    def test_no_dates(self, now):
        view = DashboardService().build_dashboard(LocalSource({"hospital": "Aga Khan Hospital"}), now)
        assert view.profile is None
        assert view.upcoming_reminders == []

    def test_future_lmp_gives_no_profile(self, now):
        view = DashboardService().build_dashboard(LocalSource({"lastPeriod": "2024-06-01"}), now)
        assert view.profile is None

    def test_malformed_payload(self, now):
        with pytest.raises(InvalidInputError):
            DashboardService().build_dashboard(LocalSource(["not", "a", "dict"]), now)
