"""
API test fixtures: TestClient over the in-memory database, fixed clock
"""
import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_db, get_now
from app.main import app


@pytest.fixture
def client(db_session, now):
    """Test client for FastAPI"""
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_now] = lambda: now
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def authenticated_client(client):
    """Client with a registered, logged-in user (session cookie)"""
    response = client.post("/api/v1/auth/register", json={
        "email": "wanjiru@example.com",
        "password": "correct-horse",
        "full_name": "Wanjiru Kamau",
        "phone": "+254712345678",
    })
    assert response.status_code == 201
    client.account_id = response.json()["id"]
    return client
