"""End-to-end checks through the HTTP layer."""
import pytest
from fastapi.testclient import TestClient

from main import app


@pytest.fixture
def client(db):
    with TestClient(app) as c:
        yield c


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "connected"


def test_protected_route_requires_session(client):
    response = client.get("/api/meal-plans/current")
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Authentication required"}


def test_signup_sets_cookie_and_plan_flow(client):
    response = client.post("/api/auth/signup", json={"email": "amy@example.com", "name": "Amy", "password": "secret123"})
    assert response.status_code == 201
    assert "auth_token" in response.cookies
    token = response.json()["data"]["token"]

    me = client.get("/api/auth/me")
    assert me.json()["data"]["email"] == "amy@example.com"

    bad = client.post("/api/meal-plans/create", json={"name": "Week", "meals_per_day": 9})
    assert bad.status_code == 400
    assert bad.json()["success"] is False

    created = client.post("/api/meal-plans/create", json={"name": "Week"})
    assert created.status_code == 201
    plan_id = created.json()["data"]["plan_id"]

    missing_date = client.post(f"/api/meal-plans/{plan_id}/shopping-list", json={})
    assert missing_date.status_code == 400
    assert missing_date.json()["error"] == "Week start date is required"

    shopping = client.post(f"/api/meal-plans/{plan_id}/shopping-list", json={"week_start_date": "2024-06-02"})
    assert shopping.status_code == 201
    assert shopping.json()["data"]["name"] == "Shopping List - Week of 2024-06-02"

    client.post("/api/meal-plans/create", json={"name": "Week 2"})
    over = client.post("/api/meal-plans/create", json={"name": "Week 3"})
    assert over.status_code == 429
    assert over.json()["error"].startswith("Daily AI request limit reached (2)")

    client.post("/api/auth/signout")
    client.cookies.clear()
    revoked = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert revoked.status_code == 401
