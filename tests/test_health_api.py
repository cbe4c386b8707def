"""
Tests for the /api/health endpoints and app-level behaviour.
"""
import pytest

from conftest import auth_headers, register


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert "version" in data


def test_liveness(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert "timestamp" in data


def test_unknown_route(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Route not found"}


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/api/health/recordings"),
        ("get", "/api/health/dashboard"),
        ("get", "/api/health/export"),
        ("post", "/api/health/habits"),
    ],
)
def test_health_routes_require_auth(client, method, path):
    response = getattr(client, method)(path)
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_recording_scenario(client, headers):
    created = client.post("/api/health/recording", json={"duration": 12}, headers=headers)
    assert created.status_code == 201
    recording = created.json()["recording"]
    assert recording["duration"] == 12
    assert recording["id"]
    assert recording["timestamp"]

    listed = client.get("/api/health/recordings", headers=headers).json()
    assert listed["count"] == 1
    assert listed["recordings"][0]["id"] == recording["id"]

    deleted = client.delete(f"/api/health/recording/{recording['id']}", headers=headers)
    assert deleted.status_code == 200

    listed = client.get("/api/health/recordings", headers=headers).json()
    assert listed["recordings"] == []
    assert listed["count"] == 0

    again = client.delete(f"/api/health/recording/{recording['id']}", headers=headers)
    assert again.status_code == 404
    assert again.json() == {"success": False, "error": "Recording not found"}


def test_new_recording_comes_first(client, headers):
    client.post("/api/health/recording", json={"duration": 1}, headers=headers)
    before = client.get("/api/health/recordings", headers=headers).json()["count"]

    created = client.post(
        "/api/health/recording",
        json={"duration": "3.5", "timestamp": 1700000000000, "recommendations": ["rest"]},
        headers=headers,
    ).json()["recording"]

    listed = client.get("/api/health/recordings", headers=headers).json()
    assert listed["count"] == before + 1
    assert listed["recordings"][0]["id"] == created["id"]
    assert created["duration"] == 3.5
    assert created["timestamp"].startswith("2023-11-14")
    assert created["recommendations"] == ["rest"]


@pytest.mark.parametrize(
    "body, message",
    [
        ({}, "Duration is required"),
        ({"duration": "long"}, "Duration must be a number"),
        ({"duration": 3, "timestamp": True}, "Timestamp must be a number"),
    ],
)
def test_recording_validation(client, headers, body, message):
    response = client.post("/api/health/recording", json=body, headers=headers)
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": message}


def test_delete_recording_with_malformed_id(client, headers):
    response = client.delete("/api/health/recording/not-an-id", headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid recording ID"


def test_delete_recording_without_health_data(client, headers):
    response = client.delete(
        "/api/health/recording/7d4c1c2e-8f52-4a55-9b1b-0d3c4a2a8e11", headers=headers
    )
    assert response.status_code == 404
    assert response.json()["error"] == "No health data found"


def test_risk_assessment(client, headers):
    assert client.get("/api/health/risk-assessment", headers=headers).json()["riskAssessment"] is None

    first = client.post(
        "/api/health/risk-assessment",
        json={"riskLevel": "High", "percentage": 75, "score": 9, "answers": {"q1": "yes"}},
        headers=headers,
    )
    assert first.status_code == 200
    assert first.json()["riskData"]["riskLevel"] == "High"

    client.post(
        "/api/health/risk-assessment", json={"riskLevel": "Low", "percentage": 0}, headers=headers
    )
    stored = client.get("/api/health/risk-assessment", headers=headers).json()["riskAssessment"]
    assert stored["riskLevel"] == "Low"
    assert stored["percentage"] == 0
    assert stored["answers"] is None


@pytest.mark.parametrize(
    "body, message",
    [
        ({"percentage": 50}, "Risk level is required"),
        ({"riskLevel": "Low"}, "Percentage is required"),
        ({"riskLevel": "Low", "percentage": "lots"}, "Percentage must be a number"),
        ({"riskLevel": "Low", "percentage": 101}, "Percentage must be between 0 and 100"),
        ({"riskLevel": "Low", "percentage": -5}, "Percentage must be between 0 and 100"),
    ],
)
def test_risk_assessment_validation(client, headers, body, message):
    response = client.post("/api/health/risk-assessment", json=body, headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == message


def test_habits(client, headers):
    assert client.get("/api/health/habits", headers=headers).json()["habits"] is None

    saved = client.post(
        "/api/health/habits",
        json={"sleep": 7, "exercise": 30, "water": 2.5, "stress": 3, "smoking": False},
        headers=headers,
    )
    assert saved.status_code == 200
    assert saved.json()["habits"]["water"] == 2.5

    client.post("/api/health/habits", json={"sleep": 6}, headers=headers)
    habits = client.get("/api/health/habits", headers=headers).json()["habits"]
    assert habits["sleep"] == 6
    assert habits["exercise"] is None
    assert habits["smoking"] is False


@pytest.mark.parametrize(
    "body, message",
    [
        ({"sleep": "lots"}, "Sleep hours must be a number"),
        ({"stress": [1]}, "Stress level must be a number"),
        ({"smoking": "sometimes"}, "Smoking status must be boolean"),
    ],
)
def test_habits_validation(client, headers, body, message):
    response = client.post("/api/health/habits", json=body, headers=headers)
    assert response.status_code == 400
    assert response.json()["error"] == message


def test_dashboard_empty(client, headers):
    response = client.get("/api/health/dashboard", headers=headers)
    assert response.status_code == 200
    dashboard = response.json()["dashboard"]
    assert dashboard["totalRecordings"] == 0
    assert dashboard["recordingsThisWeek"] == 0
    assert dashboard["recentRecordings"] == []


def test_dashboard(client, headers):
    for duration in range(1, 13):
        client.post("/api/health/recording", json={"duration": duration}, headers=headers)
    client.post("/api/health/habits", json={"sleep": 8}, headers=headers)

    dashboard = client.get("/api/health/dashboard", headers=headers).json()["dashboard"]
    assert dashboard["totalRecordings"] == 12
    assert dashboard["recordingsThisWeek"] == 12
    assert [rec["duration"] for rec in dashboard["recentRecordings"]] == list(range(12, 2, -1))
    assert dashboard["habits"]["sleep"] == 8
    assert dashboard["lastUpdated"]


def test_export(client, headers):
    empty = client.get("/api/health/export", headers=headers).json()["data"]
    assert empty["recordings"] == []
    assert empty["user"]["email"] == "a@x.com"

    client.post("/api/health/recording", json={"duration": 2}, headers=headers)
    data = client.get("/api/health/export", headers=headers).json()["data"]
    assert len(data["recordings"]) == 1
    assert data["exportDate"]


def test_account_deletion_cascades(client, headers):
    client.post("/api/health/recording", json={"duration": 5}, headers=headers)
    client.post("/api/health/habits", json={"sleep": 5}, headers=headers)
    assert client.delete("/api/auth/account", headers=headers).status_code == 200

    token = register(client).json()["token"]
    data = client.get("/api/health/export", headers=auth_headers(token)).json()["data"]
    assert data["recordings"] == []
    assert data["habits"] is None


def test_habits_without_body(client, headers):
    response = client.post("/api/health/habits", headers=headers)
    assert response.status_code == 200
    habits = response.json()["habits"]
    assert habits["sleep"] is None
    assert habits["smoking"] is False


@pytest.mark.parametrize(
    "path, message",
    [
        ("/api/health/recording", "Duration is required"),
        ("/api/health/risk-assessment", "Risk level is required"),
    ],
)
def test_missing_body_reports_first_field(client, headers, path, message):
    response = client.post(path, headers=headers)
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": message}


def test_wrong_method_is_route_not_found(client, headers):
    response = client.put("/api/health/recordings", headers=headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Route not found"


def test_security_headers(client):
    response = client.get("/api/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
