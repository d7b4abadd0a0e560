"""
Tests for auth, profile, reminders, contacts and dashboard API endpoints
"""
import pytest


@pytest.fixture
def onboarded(authenticated_client):
    response = authenticated_client.post("/api/v1/profile/", json={
        "last_menstrual_period": "2024-01-01",
        "hospital": "Kenyatta National",
    })
    assert response.status_code == 201
    return authenticated_client


class TestAuth:
    def test_login_logout(self, authenticated_client):
        authenticated_client.post("/api/v1/auth/logout")
        assert authenticated_client.get("/api/v1/auth/me").status_code == 401

        response = authenticated_client.post("/api/v1/auth/login", json={
            "email": "Wanjiru@example.com", "password": "correct-horse",
        })
        assert response.status_code == 200
        assert authenticated_client.get("/api/v1/auth/me").json()["full_name"] == "Wanjiru Kamau"

    def test_wrong_password(self, authenticated_client):
        authenticated_client.post("/api/v1/auth/logout")
        response = authenticated_client.post("/api/v1/auth/login", json={
            "email": "wanjiru@example.com", "password": "nope-nope",
        })
        assert response.status_code == 401

    def test_duplicate_email(self, authenticated_client):
        response = authenticated_client.post("/api/v1/auth/register", json={
            "email": "wanjiru@example.com", "password": "another-pass", "full_name": "Someone",
        })
        assert response.status_code == 422


class TestProfile:
    def test_create_and_read(self, onboarded):
        data = onboarded.get("/api/v1/profile/").json()
        assert data["current_week"] == 13
        assert data["trimester"] == 2
        assert data["due_date"] == "2024-10-07"
        assert data["hospital"] == "Kenyatta National"

    def test_missing_dates(self, authenticated_client):
        response = authenticated_client.post("/api/v1/profile/", json={"hospital": "Kenyatta National"})
        assert response.status_code == 422
        assert response.json()["error"] == "InvalidInputError"

    def test_no_profile(self, authenticated_client):
        response = authenticated_client.get("/api/v1/profile/")
        assert response.status_code == 200
        assert response.json() is None

    def test_update_dates(self, onboarded):
        profile_id = onboarded.get("/api/v1/profile/").json()["id"]
        response = onboarded.put(f"/api/v1/profile/{profile_id}/dates", json={"due_date": "2024-09-23"})

        assert response.status_code == 200
        assert response.json()["current_week"] == 15
        assert response.json()["last_menstrual_period"] is None


class TestReminders:
    def test_complete_twice_conflicts(self, onboarded):
        reminder = onboarded.get("/api/v1/reminders/", params={"upcoming": True}).json()[0]

        first = onboarded.post(f"/api/v1/reminders/{reminder['id']}/complete")
        second = onboarded.post(f"/api/v1/reminders/{reminder['id']}/complete")

        assert first.status_code == 200
        assert first.json()["completed"] is True
        assert second.status_code == 409
        assert second.json()["error"] == "AlreadyCompletedError"
        assert second.json()["reminder"]["id"] == reminder["id"]
        assert second.json()["reminder"]["completed"] is True
        assert second.json()["reminder"]["completed_at"] == first.json()["completed_at"]

    def test_missing_reminder(self, onboarded):
        assert onboarded.post("/api/v1/reminders/9999/complete").status_code == 404

    def test_seed_is_idempotent(self, onboarded):
        profile_id = onboarded.get("/api/v1/profile/").json()["id"]
        first = onboarded.post(f"/api/v1/reminders/seed/{profile_id}").json()
        second = onboarded.post(f"/api/v1/reminders/seed/{profile_id}").json()
        assert len(first) == len(second) == 17

    def test_sms_disabled_is_reported(self, onboarded):
        reminder = onboarded.get("/api/v1/reminders/").json()[0]
        response = onboarded.post(f"/api/v1/reminders/{reminder['id']}/sms", json={})

        assert response.status_code == 200
        assert response.json() == {"success": False, "error": "SMS disabled"}


def test_contacts_single_primary(authenticated_client):
    ids = [
        authenticated_client.post("/api/v1/contacts/", json={"name": n, "phone": p}).json()["id"]
        for n, p in (("Achieng", "+254700000001"), ("Baraka", "+254700000002"))
    ]
    authenticated_client.post(f"/api/v1/contacts/{ids[0]}/promote")
    contacts = authenticated_client.post(f"/api/v1/contacts/{ids[1]}/promote").json()

    assert [(c["name"], c["is_primary"]) for c in contacts] == [("Baraka", True), ("Achieng", False)]


class TestDashboard:
    def test_persisted(self, onboarded):
        onboarded.post("/api/v1/symptoms/", json={"symptom": "Nausea", "severity": "mild"})

        data = onboarded.get("/api/v1/dashboard/").json()

        assert data["source"] == "persisted"
        assert data["profile"]["current_week"] == 13
        assert len(data["upcoming_reminders"]) == 5
        assert data["recent_symptoms"][0]["symptom"] == "Nausea"
        assert data["recent_symptoms"][0]["date"] == "2024-03-25"
        assert data["subscription"]["plan_type"] == "free"

    def test_requires_login(self, client):
        assert client.get("/api/v1/dashboard/").status_code == 401

    def test_local_needs_no_login(self, client):
        response = client.post("/api/v1/dashboard/local", json={
            "lastPeriod": "2024-01-01",
            "hospital": "Aga Khan Hospital",
            "emergencyContacts": [{"name": "Baraka", "phone": "+254700000001", "isPrimary": True}],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "local"
        assert data["profile"]["trimester"] == 2
        assert data["emergency_contacts"][0]["is_primary"] is True
        assert data["recent_symptoms"] == []
