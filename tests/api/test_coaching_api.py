"""HTTP tests for the coaching and profile routes.

Gating order on /coaching/message: rate limit, authentication, entitlement,
then the pipeline. Every response, success or failure, uses the envelope.
"""

import json

import pytest
from fastapi.testclient import TestClient

from auracoach.main import create_app
from auracoach.services import CoachingServices
from auracoach.storage.keys import snapshot_key


@pytest.fixture
def client(services) -> TestClient:
    return TestClient(create_app(services=services))


@pytest.fixture
def auth(make_token):
    def _auth(user_id: str = "user-1", active: bool = True) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id, active=active)}"}

    return _auth


def _body(session_type: str, message: str = "Here is my update", user_id: str = "user-1", **context) -> dict:
    return {"message": message, "userId": user_id, "context": {"sessionType": session_type, **context}}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_onboarding_returns_snapshot_in_envelope(client, auth, store, onboarding_answers):
    response = client.post(
        "/coaching/message",
        json=_body("onboarding_diagnostic", onboardingAnswers=onboarding_answers),
        headers={**auth(), "X-Request-ID": "req-123"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["metadata"]["requestId"] == "req-123"
    assert response.headers["X-Request-ID"] == "req-123"
    assert response.headers["X-RateLimit-Limit"] == "10"
    data = body["data"]
    assert data["type"] == "SNAPSHOT"
    assert data["metadata"]["chainUsed"] == "onboarding_diagnostic"
    assert data["payload"]["archetype"] == "Visionary Achiever"
    assert data["content"].endswith("career growth")


def test_body_user_id_is_replaced_by_token_subject(client, auth, store, onboarding_answers):
    client.post(
        "/coaching/message",
        json=_body("onboarding_diagnostic", user_id="someone-else", onboardingAnswers=onboarding_answers),
        headers=auth("user-1"),
    )

    assert snapshot_key("user-1") in store.writes
    assert not any("someone-else" in key for key in store.writes)
    other = client.post(
        "/coaching/message",
        json=_body("snapshot_generation", user_id="someone-else"),
        headers=auth("someone-else"),
    )
    assert other.status_code == 404


def test_missing_token_is_unauthorized(client):
    response = client.post("/coaching/message", json=_body("diagnostic"))

    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "UNAUTHORIZED"


def test_invalid_token_is_unauthorized(client):
    response = client.post(
        "/coaching/message",
        json=_body("diagnostic"),
        headers={"Authorization": "Bearer not-a-token"},
    )

    assert response.status_code == 401


def test_paid_session_without_subscription_is_forbidden(client, auth, backend):
    response = client.post("/coaching/message", json=_body("diagnostic"), headers=auth(active=False))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "SUBSCRIPTION_REQUIRED"
    assert backend.calls == []


def test_onboarding_is_free_without_subscription(client, auth, onboarding_answers):
    response = client.post(
        "/coaching/message",
        json=_body("onboarding_diagnostic", onboardingAnswers=onboarding_answers),
        headers=auth(active=False),
    )

    assert response.status_code == 200


def test_rate_limit_returns_429_with_headers(config, backend, store, auth, onboarding_answers):
    limited = CoachingServices.build(
        config.model_copy(update={"coaching_rate_limit": 1}),
        backend=backend,
        store=store,
    )
    client = TestClient(create_app(services=limited))
    body = _body("onboarding_diagnostic", onboardingAnswers=onboarding_answers)

    assert client.post("/coaching/message", json=body, headers=auth()).status_code == 200
    response = client.post("/coaching/message", json=body, headers=auth())

    assert response.status_code == 429
    assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert int(response.headers["Retry-After"]) >= 1


def test_empty_message_is_a_validation_error(client, auth):
    response = client.post("/coaching/message", json=_body("diagnostic", message=""), headers=auth())

    assert response.status_code == 400
    body = response.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["details"]["errors"][0]["field"] == "message"


def test_reflection_without_task_is_rejected(client, auth, backend):
    response = client.post(
        "/coaching/message",
        json=_body("reflection", reflectionId="easy"),
        headers=auth(),
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MISSING_REFLECTION_DATA"
    assert backend.calls == []


def test_snapshot_before_onboarding_is_not_found(client, auth):
    response = client.post("/coaching/message", json=_body("snapshot_generation"), headers=auth())

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_crisis_message_gets_crisis_response(client, auth, backend):
    backend.replies = [json.dumps({"riskLevel": "high", "confidence": 0.9, "indicators": ["suicidal ideation"]})]

    response = client.post(
        "/coaching/message",
        json=_body("diagnostic", message="I want to kill myself"),
        headers=auth(),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["type"] == "CRISIS_RESPONSE"
    assert data["metadata"]["chainUsed"] == "guardrail"
    assert data["metadata"]["riskLevel"] == "high"
    assert "988" in data["content"]
    assert data["payload"]["crisisIndicators"]["suicidalIdeation"] is True
    assert len(backend.calls) == 1


def test_diagnostic_turn_is_recorded_in_history(client, auth, backend):
    backend.replies = [json.dumps({"response": "What matters most here?", "strategy": "MI_EXPLORATION"})]

    sent = client.post("/coaching/message", json=_body("diagnostic", message="I want to get fit"), headers=auth())
    history = client.get("/coaching/history", headers=auth())

    assert sent.json()["data"]["content"] == "What matters most here?"
    entries = history.json()["data"]["entries"]
    assert len(entries) == 1
    assert entries[0]["message"] == "I want to get fit"
    assert entries[0]["response"]["content"] == "What matters most here?"


def test_first_step_returns_microtask(client, auth, backend, onboarding_answers):
    backend.replies = [json.dumps({"rationale": "Start small.", "task": "Update one line of your CV"})]

    response = client.post("/coaching/first-step", json={"onboardingAnswers": onboarding_answers}, headers=auth())

    data = response.json()["data"]
    assert data["metadata"]["chainUsed"] == "first_step"
    assert data["payload"]["microtask"]["task"] == "Update one line of your CV"


def test_adapt_failure_returns_previous_intervention(client, auth, backend):
    backend.error = TimeoutError()
    previous = {
        "interventionType": "behavioral",
        "strategy": "HABIT_STACKING",
        "content": "Stretch after brushing your teeth.",
        "actionSteps": ["Stretch for one minute"],
        "timeframe": "This week",
        "successMetrics": "Five days of stretching",
    }

    response = client.post(
        "/coaching/interventions/adapt",
        json={"previous": previous, "feedback": "It was a bit boring", "direction": "different_approach"},
        headers=auth(),
    )

    data = response.json()["data"]
    assert data["adapted"] is False
    assert data["intervention"]["strategy"] == "HABIT_STACKING"


def test_question_bank_routes(client, auth):
    found = client.get("/coaching/questions/barriers", headers=auth())
    missing = client.get("/coaching/questions/astrology", headers=auth())

    assert len(found.json()["data"]["questions"]) == 5
    assert missing.status_code == 404


def test_profile_update_merges_fields(client, auth):
    client.put("/users/profile", json={"preferences": {"theme": "professional"}}, headers=auth())
    client.put("/users/profile", json={"psychologicalProfile": {"mindset": "growth"}}, headers=auth())

    profile = client.get("/users/profile", headers=auth()).json()["data"]

    assert profile["id"] == "user-1"
    assert profile["preferences"]["theme"] == "professional"
    assert profile["preferences"]["coachingStyle"] == "supportive"
    assert profile["psychologicalProfile"]["mindset"] == "growth"
