from __future__ import annotations

import pytest

from src.easydoor.easydoor.container import wire_container
from src.easydoor.easydoor.main import create_app


@pytest.fixture
def app(monkeypatch, users, companies, offices, service_cards, visits, attendance, clock):
    monkeypatch.setenv("APP_ENV", "testing")
    container = wire_container(
        users_repo=users,
        companies_repo=companies,
        offices_repo=offices,
        service_cards_repo=service_cards,
        visits_repo=visits,
        attendance_repo=attendance,
        jwt_secret="api-test-secret",
        clock=clock,
    )
    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth(client):
    resp = client.post(
        "/api/users/register",
        json={"email": "admin@example.com", "password": "secret1", "firstName": "Ada", "lastName": "Admin"},
    )
    assert resp.status_code == 201
    body = resp.get_json()
    return {"Authorization": f"Bearer {body['token']}"}, body["user"]["id"]


def test_health_is_public(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "OK"


def test_protected_route_requires_token(client):
    resp = client.get("/api/visits")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Authentication"


def test_register_hides_password_and_login_works(client, auth):
    headers, user_id = auth

    resp = client.post("/api/users/login", json={"email": "ADMIN@example.com", "password": "secret1"})
    assert resp.status_code == 200
    user = resp.get_json()["user"]
    assert user["id"] == user_id
    assert "password" not in user and "passwordHash" not in user and "token" not in user

    resp = client.post("/api/users/login", json={"email": "admin@example.com", "password": "nope"})
    assert resp.status_code == 401


@pytest.mark.parametrize(
    "path,payload",
    [
        ("/api/users/register", {"email": "numeric@example.com", "password": 1234567}),
        ("/api/users/register", {"email": 42, "password": "secret1"}),
        ("/api/users/login", {"email": 42, "password": "secret1"}),
        ("/api/users/login", {"email": "admin@example.com", "password": 1234567}),
    ],
)
def test_non_string_credentials_are_400(client, auth, path, payload):
    resp = client.post(path, json=payload)
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "ValidationFailure"
    assert "must be a string" in body["message"]


def test_fractional_id_is_rejected(client, auth):
    headers, user_id = auth
    resp = client.post("/api/attendance", json={"employee": user_id + 0.9, "workingFrom": "home"}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ValidationFailure"
    assert client.get("/api/attendance/active", headers=headers).get_json()["totalActive"] == 0


def test_profile_and_users_listing(client, auth):
    headers, user_id = auth

    assert client.get("/api/users/profile", headers=headers).get_json()["user"]["id"] == user_id
    body = client.get("/api/users?limit=5", headers=headers).get_json()
    assert body["totalUsers"] == 1
    assert body["currentPage"] == 1
    assert body["totalPages"] == 1


def test_deactivated_user_token_is_rejected(client, auth):
    headers, user_id = auth

    assert client.delete(f"/api/users/{user_id}", headers=headers).status_code == 200
    assert client.get("/api/users/profile", headers=headers).status_code == 401


def _company_and_office(client, headers):
    company = client.post("/api/companies", json={"acronym": "acme", "fullName": "Acme"}, headers=headers)
    assert company.status_code == 201
    company_id = company.get_json()["company"]["id"]
    office = client.post(
        "/api/offices",
        json={
            "name": "HQ",
            "address": "1 Main Street",
            "city": "Paris",
            "country": "France",
            "company": company_id,
            "capacity": 2,
        },
        headers=headers,
    )
    assert office.status_code == 201
    return company_id, office.get_json()["office"]["id"]


def test_company_populates_offices_and_members(client, auth):
    headers, user_id = auth
    company_id, office_id = _company_and_office(client, headers)

    resp = client.patch(
        f"/api/companies/{company_id}/add-employee",
        json={"employeeId": user_id, "isAdmin": True},
        headers=headers,
    )
    company = resp.get_json()["company"]
    assert company["acronym"] == "ACME"
    assert company["office"] == [{"id": office_id, "name": "HQ", "address": "1 Main Street", "city": "Paris"}]
    assert company["admin"][0]["email"] == "admin@example.com"
    assert company["totalEmployees"] == 1


def test_office_occupancy_over_capacity_is_400(client, auth):
    headers, _ = auth
    _, office_id = _company_and_office(client, headers)

    resp = client.patch(f"/api/offices/{office_id}/occupancy", json={"currentOccupancy": 3}, headers=headers)
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["capacity"] == 2
    assert body["requested"] == 3

    stats = client.get(f"/api/offices/{office_id}/stats", headers=headers).get_json()
    assert stats["stats"]["availableSpace"] == 2
    assert stats["stats"]["status"] == "active"


def test_visit_flow_over_http(client, auth, clock):
    headers, user_id = auth
    visitor = client.post("/api/users/register", json={"email": "guest@example.com", "password": "secret1"})
    visitor_id = visitor.get_json()["user"]["id"]

    resp = client.post(
        "/api/visits",
        json={
            "visitor": visitor_id,
            "employee": user_id,
            "expectedClockIn": "2026-03-02T10:00:00",
            "reason": "Interview",
        },
        headers=headers,
    )
    assert resp.status_code == 201
    visit = resp.get_json()["visit"]
    assert visit["status"] == "pending"
    assert visit["visitor"]["email"] == "guest@example.com"

    resp = client.patch(f"/api/visits/{visit['id']}/clock-in", headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "InvalidState"

    assert client.patch(f"/api/visits/{visit['id']}/accept", headers=headers).status_code == 200
    assert client.patch(f"/api/visits/{visit['id']}/clock-in", headers=headers).get_json()["visit"]["isActive"]

    clock.advance(hours=1, minutes=10)
    body = client.patch(f"/api/visits/{visit['id']}/clock-out", headers=headers).get_json()
    assert body["duration"] == "1h 10m"
    assert body["visit"]["status"] == "completed"

    listing = client.get("/api/visits/status/completed", headers=headers).get_json()
    assert listing["totalVisits"] == 1

    profile = client.get(f"/api/users/{visitor_id}", headers=headers).get_json()["user"]
    assert profile["visits"] == [visit["id"]]


def test_visit_not_found_is_404(client, auth):
    headers, _ = auth
    resp = client.patch("/api/visits/999/accept", headers=headers)
    assert resp.status_code == 404
    assert resp.get_json() == {"message": "Visit not found", "error": "NotFound"}


def test_attendance_flow_over_http(client, auth, clock):
    headers, user_id = auth
    _, office_id = _company_and_office(client, headers)

    resp = client.post(
        "/api/attendance",
        json={"employee": user_id, "workingFrom": "office", "office": office_id},
        headers=headers,
    )
    assert resp.status_code == 201
    record = resp.get_json()["attendance"]
    assert record["office"]["id"] == office_id
    assert record["currentDuration"] == "0h 0m"

    resp = client.post("/api/attendance", json={"employee": user_id, "workingFrom": "home"}, headers=headers)
    assert resp.status_code == 409
    assert resp.get_json()["activeAttendance"]["id"] == record["id"]

    active = client.get("/api/attendance/active", headers=headers).get_json()
    assert active["totalActive"] == 1

    clock.advance(hours=8, minutes=30)
    body = client.patch(f"/api/attendance/employee/{user_id}/clock-out", headers=headers).get_json()
    assert body["duration"] == "8h 30m"
    assert body["workHours"] == 8.5
    assert body["attendance"]["isOvertime"] is True

    resp = client.patch(f"/api/attendance/{record['id']}/clock-out", headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "AlreadyDone"

    summary = client.get(f"/api/attendance/employee/{user_id}/summary", headers=headers).get_json()
    assert summary["summary"]["totalSessions"] == 1
    assert summary["summary"]["workPattern"] == {"office": 100, "home": 0}


def test_clock_in_office_without_office_is_400(client, auth):
    headers, user_id = auth
    resp = client.post("/api/attendance", json={"employee": user_id, "workingFrom": "office"}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Precondition"


def test_service_card_flow_over_http(client, auth):
    headers, user_id = auth
    company_id, _ = _company_and_office(client, headers)

    resp = client.post(
        "/api/service-cards",
        json={"user": user_id, "company": company_id, "position": "Engineer"},
        headers=headers,
    )
    assert resp.status_code == 201
    card = resp.get_json()["serviceCard"]
    assert card["company"]["acronym"] == "ACME"
    assert card["daysUntilExpiration"] == 365

    resp = client.post(
        "/api/service-cards",
        json={"user": user_id, "company": company_id, "position": "Engineer"},
        headers=headers,
    )
    assert resp.status_code == 409

    validity = client.get(f"/api/service-cards/{card['id']}/validity", headers=headers).get_json()
    assert validity["validity"]["isValid"] is True

    by_user = client.get(f"/api/service-cards/user/{user_id}", headers=headers).get_json()
    assert by_user["totalCards"] == 1


def test_non_object_body_is_400(client, auth):
    headers, _ = auth
    resp = client.post("/api/companies", json=[1, 2], headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ValidationFailure"


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Not Found"
