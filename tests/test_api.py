"""
Tests for the HTTP API: quiz catalogue, records, sessions and health.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from santelle import __version__
from santelle.config import Settings
from santelle.web.app import app
from santelle.web.dependencies import (
    get_app_settings,
    get_domain_validator,
    get_quiz_store,
    get_session_registry,
    get_waitlist_service,
)
from santelle.web.sessions import QuizSessionRegistry


@pytest.fixture
def registry():
    return QuizSessionRegistry(expire_hours=24)


@pytest.fixture
def client(store, waitlist, validator, registry):
    app.dependency_overrides[get_app_settings] = lambda: Settings(store_backend="memory", email_debounce_ms=0)
    app.dependency_overrides[get_quiz_store] = lambda: store
    app.dependency_overrides[get_waitlist_service] = lambda: waitlist
    app.dependency_overrides[get_domain_validator] = lambda: validator
    app.dependency_overrides[get_session_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _drain(client, registry):
    client.portal.call(registry.close_all)


def _session_at_lead_capture(client, answers=(3, 2, 2, 2), plan="Balanced") -> str:
    session_id = client.post("/api/quiz/sessions").json()["session"]["session_id"]
    client.post(f"/api/quiz/sessions/{session_id}/start")
    for option in answers:
        client.post(f"/api/quiz/sessions/{session_id}/answer", json={"option": option})
        client.post(f"/api/quiz/sessions/{session_id}/next")
    client.post(f"/api/quiz/sessions/{session_id}/plan", json={"plan_name": plan})
    return session_id


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": __version__}


class TestCatalogue:

    def test_questions(self, client):
        data = client.get("/api/quiz/questions").json()

        assert [q["id"] for q in data["questions"]] == ["q1", "q2", "q3", "q4"]
        assert len(data["questions"][0]["options"]) == 4
        assert [p["name"] for p in data["plans"]] == ["Proactive", "Balanced", "Essential", "One-Off"]

    def test_recommendation(self, client):
        response = client.post(
            "/api/quiz/recommendation",
            json={"answers": {"q1": 4, "q2": 1, "q3": 1, "q4": 1}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["recommended_plan"] == 2
        assert data["tier"] == 1
        assert data["plan"]["name"] == "Essential"

    def test_recommendation_incomplete(self, client):
        response = client.post("/api/quiz/recommendation", json={"answers": {"q1": 4}})

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["errorType"] == "VALIDATION"
        assert data["details"] == {"missing": ["q2", "q3", "q4"]}

    def test_recommendation_out_of_range(self, client):
        response = client.post(
            "/api/quiz/recommendation",
            json={"answers": {"q1": 9, "q2": 1, "q3": 1, "q4": 1}},
        )
        assert response.status_code == 400


class TestQuizRecords:

    def test_create_and_update(self, client, store):
        response = client.post("/api/quiz", json={"answers": {"q1": 1, "q2": 2, "q3": 3, "q4": 1}})

        assert response.status_code == 200
        record_id = response.json()["data"]["id"]
        assert store.records[record_id]["signup?"] is False

        response = client.put("/api/quiz", json={"id": record_id, "email": "a@example.com", "signup": True})

        assert response.status_code == 200
        assert store.records[record_id]["email"] == "a@example.com"
        assert store.records[record_id]["signup?"] is True

    def test_create_store_failure(self, client):
        failing = AsyncMock()
        failing.create.side_effect = RuntimeError("db down")
        app.dependency_overrides[get_quiz_store] = lambda: failing

        response = client.post("/api/quiz", json={"answers": {"q1": 1, "q2": 2, "q3": 3, "q4": 1}})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to save quiz answers"

    def test_update_unknown_record(self, client):
        response = client.put("/api/quiz", json={"id": "missing", "email": "a@example.com", "signup": True})
        assert response.status_code == 500

    def test_update_requires_email(self, client):
        response = client.put("/api/quiz", json={"id": "abc"})
        assert response.status_code == 400
        assert response.json()["errorType"] == "VALIDATION"

    def test_create_rejects_malformed_email(self, client, store):
        response = client.post(
            "/api/quiz",
            json={"answers": {"q1": 1, "q2": 2, "q3": 3, "q4": 1}, "email": "not-an-email"},
        )

        assert response.status_code == 400
        data = response.json()
        assert any("Invalid email format" in problem["message"] for problem in data["details"])
        assert store.records == {}

    def test_create_normalizes_email(self, client, store):
        response = client.post(
            "/api/quiz",
            json={"answers": {"q1": 1, "q2": 2, "q3": 3, "q4": 1}, "email": " A@Example.com "},
        )

        record_id = response.json()["data"]["id"]
        assert store.records[record_id]["email"] == "a@example.com"

    def test_update_rejects_malformed_email(self, client, store):
        record_id = client.post("/api/quiz", json={"answers": {"q1": 1, "q2": 2, "q3": 3, "q4": 1}}).json()["data"]["id"]

        response = client.put("/api/quiz", json={"id": record_id, "email": "not-an-email", "signup": True})

        assert response.status_code == 400
        assert response.json()["errorType"] == "VALIDATION"
        assert store.records[record_id]["email"] is None

    def test_admin_lists_records(self, client):
        for q1 in (1, 2):
            client.post("/api/quiz", json={"answers": {"q1": q1, "q2": 1, "q3": 1, "q4": 1}})

        data = client.get("/api/quiz/admin").json()

        assert data["success"] is True
        assert len(data["data"]) == 2
        assert len(client.get("/api/quiz/admin", params={"limit": 1}).json()["data"]) == 1


class TestQuizSessions:

    def test_full_flow(self, client, store, waitlist, registry):
        session_id = _session_at_lead_capture(client, answers=(1, 3, 3, 3), plan="Proactive")

        response = client.post(f"/api/quiz/sessions/{session_id}/email", json={"email": "Someone@Example.com"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "accepted"
        assert data["session"]["current_phase"] == "complete"
        assert data["session"]["recommended_plan"] == 0

        _drain(client, registry)
        assert "someone@example.com" in waitlist.entries
        (record,) = store.records.values()
        assert record["plan"] == "Proactive"
        assert record["email"] == "someone@example.com"
        assert record["signup?"] is True

    def test_new_session_is_intro(self, client):
        data = client.post("/api/quiz/sessions").json()
        assert data["session"]["current_phase"] == "intro"

        fetched = client.get(f"/api/quiz/sessions/{data['session']['session_id']}").json()
        assert fetched["session"]["session_id"] == data["session"]["session_id"]

    def test_unknown_session(self, client):
        response = client.post("/api/quiz/sessions/nope/start")
        assert response.status_code == 404
        assert response.json()["errorType"] == "NOT_FOUND"

    def test_next_without_answer(self, client):
        session_id = client.post("/api/quiz/sessions").json()["session"]["session_id"]
        client.post(f"/api/quiz/sessions/{session_id}/start")

        data = client.post(f"/api/quiz/sessions/{session_id}/next").json()

        assert data["advanced"] is False
        assert data["session"]["current_question"] == 0

    def test_previous(self, client):
        session_id = client.post("/api/quiz/sessions").json()["session"]["session_id"]
        client.post(f"/api/quiz/sessions/{session_id}/start")
        client.post(f"/api/quiz/sessions/{session_id}/answer", json={"option": 2})
        client.post(f"/api/quiz/sessions/{session_id}/next")

        data = client.post(f"/api/quiz/sessions/{session_id}/previous").json()

        assert data["advanced"] is True
        assert data["session"]["question"]["id"] == "q1"
        assert data["session"]["selected_option"] == 2

    def test_wrong_phase_is_conflict(self, client):
        session_id = client.post("/api/quiz/sessions").json()["session"]["session_id"]

        response = client.post(f"/api/quiz/sessions/{session_id}/answer", json={"option": 1})

        assert response.status_code == 409
        assert response.json()["details"] == {"phase": "intro"}

    def test_out_of_range_answer(self, client):
        session_id = client.post("/api/quiz/sessions").json()["session"]["session_id"]
        client.post(f"/api/quiz/sessions/{session_id}/start")

        response = client.post(f"/api/quiz/sessions/{session_id}/answer", json={"option": 7})

        assert response.status_code == 400

    def test_unknown_plan(self, client, registry):
        session_id = client.post("/api/quiz/sessions").json()["session"]["session_id"]
        client.post(f"/api/quiz/sessions/{session_id}/start")
        for option in (1, 1, 1, 1):
            client.post(f"/api/quiz/sessions/{session_id}/answer", json={"option": option})
            client.post(f"/api/quiz/sessions/{session_id}/next")

        response = client.post(f"/api/quiz/sessions/{session_id}/plan", json={"plan_name": "Weekly"})

        assert response.status_code == 400
        _drain(client, registry)

    def test_email_draft_feedback(self, client, registry):
        session_id = _session_at_lead_capture(client)

        bad = client.put(f"/api/quiz/sessions/{session_id}/email", json={"email": "someone@"}).json()
        good = client.put(f"/api/quiz/sessions/{session_id}/email", json={"email": "someone@example.com"}).json()

        assert bad["format_valid"] is False
        assert bad["error"] == "Please enter a valid email address"
        assert good["format_valid"] is True
        _drain(client, registry)

    def test_invalid_domain(self, client, registry):
        session_id = _session_at_lead_capture(client)

        response = client.post(f"/api/quiz/sessions/{session_id}/email", json={"email": "a@no-mail.invalid"})

        assert response.status_code == 400
        assert response.json()["status"] == "invalid_domain"
        assert response.json()["session"]["current_phase"] == "lead_capture"
        _drain(client, registry)

    def test_rate_limited(self, client, registry):
        session_id = _session_at_lead_capture(client)

        statuses = [
            client.post(f"/api/quiz/sessions/{session_id}/email", json={"email": "bad"}).status_code
            for _ in range(3)
        ]
        response = client.post(f"/api/quiz/sessions/{session_id}/email", json={"email": "a@example.com"})

        assert statuses == [400, 400, 400]
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "300"
        assert response.json()["message"] == "Too many attempts. Please wait 300 seconds."
        _drain(client, registry)

    def test_subscribe_failure(self, client, registry):
        failing = AsyncMock()
        failing.subscribe.side_effect = RuntimeError("db down")
        app.dependency_overrides[get_waitlist_service] = lambda: failing
        session_id = _session_at_lead_capture(client)

        response = client.post(f"/api/quiz/sessions/{session_id}/email", json={"email": "a@example.com"})

        assert response.status_code == 502
        assert response.json()["message"] == "Failed to join the waitlist. Please try again."
        assert response.json()["session"]["current_phase"] == "lead_capture"
        _drain(client, registry)

    def test_repeat_submit_after_completion(self, client, registry):
        session_id = _session_at_lead_capture(client)
        client.post(f"/api/quiz/sessions/{session_id}/email", json={"email": "a@example.com"})

        response = client.post(f"/api/quiz/sessions/{session_id}/email", json={"email": "a@example.com"})

        assert response.status_code == 200
        assert response.json()["status"] == "accepted"
        _drain(client, registry)
