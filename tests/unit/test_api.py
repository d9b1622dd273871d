"""
Unit Tests for the HTTP API

Routes run against an in-memory snapshot store through FastAPI's TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from numberland.core.dependencies import create_access_token, get_snapshot_store
from numberland.main import app


@pytest.fixture
def client(cache_store):
    app.dependency_overrides[get_snapshot_store] = lambda: cache_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user_id: str, role: str = "child") -> dict:
    token = create_access_token({"sub": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}


TRACING = {
    "category": "Numbers",
    "item_label": "3",
    "completed": False,
    "stars_achieved": 1,
    "max_stars": 3,
    "total_time": 70.0,
}

FAILED_QUIZ = {
    "category": "Numbers",
    "item_label": "3",
    "quiz_details": [{"type": "Counting", "lives_remaining": 0, "total_lives": 3, "score": 30}],
}


# ============================================================================
# Service Endpoints
# ============================================================================


def test_root(client) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "operational"


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# ============================================================================
# Authorization
# ============================================================================


class TestAuthorization:

    def test_missing_token_rejected(self, client) -> None:
        response = client.get("/api/analytics/child-a/weaknesses")

        assert response.status_code in (401, 403)

    def test_invalid_token_rejected(self, client) -> None:
        response = client.get(
            "/api/analytics/child-a/weaknesses",
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401

    def test_other_learner_forbidden(self, client) -> None:
        response = client.get("/api/analytics/child-a/weaknesses", headers=auth("child-b"))

        assert response.status_code == 403

    def test_parent_may_read_learner(self, client) -> None:
        response = client.get("/api/analytics/child-a/weaknesses", headers=auth("parent-1", role="parent"))

        assert response.status_code == 200


# ============================================================================
# Progress Endpoints
# ============================================================================


class TestProgressEndpoints:

    def test_record_tracing(self, client) -> None:
        response = client.post("/api/progress/child-a/tracing", json=TRACING, headers=auth("child-a"))

        assert response.status_code == 200
        body = response.json()
        assert body["tracing_count"] == 1
        assert body["total_stars_achieved"] == 1

    def test_invalid_event_maps_to_validation_error(self, client) -> None:
        event = {**FAILED_QUIZ, "quiz_details": [{**FAILED_QUIZ["quiz_details"][0], "score": 150}]}

        response = client.post("/api/progress/child-a/quiz", json=event, headers=auth("child-a"))

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["field"] == "quiz_details[0].score"

    def test_missing_snapshot_is_not_found(self, client) -> None:
        response = client.get("/api/progress/child-a/snapshot", headers=auth("child-a"))

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_batch_then_snapshot(self, client) -> None:
        batch = {"tracing_activities": [TRACING], "quiz_activities": [FAILED_QUIZ]}

        response = client.post("/api/progress/child-a/batch", json=batch, headers=auth("child-a"))
        snapshot = client.get("/api/progress/child-a/snapshot", headers=auth("child-a"))

        body = response.json()
        assert body["tracing_applied"] == 1
        assert body["quiz_applied"] == 1
        assert body["quiz_performance"]["failed"] == 1
        item = snapshot.json()["categories"]["Numbers"]["3"]
        assert item["tracing_count"] == 1
        assert item["quiz_fail_count"] == 1

    def test_batch_with_invalid_event_rejected_whole(self, client) -> None:
        batch = {"tracing_activities": [TRACING, {**TRACING, "stars_achieved": 9}], "quiz_activities": [FAILED_QUIZ]}

        response = client.post("/api/progress/child-a/batch", json=batch, headers=auth("child-a"))
        snapshot = client.get("/api/progress/child-a/snapshot", headers=auth("child-a"))

        assert response.status_code == 422
        errors = response.json()["details"]["errors"]
        assert [e["field"] for e in errors] == ["tracing_activities[1].stars_achieved"]
        assert snapshot.status_code == 404

    def test_delete(self, client) -> None:
        client.post("/api/progress/child-a/tracing", json=TRACING, headers=auth("child-a"))

        response = client.delete("/api/progress/child-a", headers=auth("child-a"))

        assert response.json() == {"deleted": 1}


# ============================================================================
# Analytics Endpoints
# ============================================================================


class TestAnalyticsEndpoints:

    @pytest.fixture
    def recorded(self, client):
        for _ in range(3):
            client.post("/api/progress/child-a/tracing", json=TRACING, headers=auth("child-a"))
        client.post("/api/progress/child-a/quiz", json=FAILED_QUIZ, headers=auth("child-a"))
        return client

    def test_weaknesses(self, recorded) -> None:
        response = recorded.get("/api/analytics/child-a/weaknesses", headers=auth("child-a"))

        body = response.json()
        assert [w["item_name"] for w in body["weak_items"]["Numbers"]] == ["3"]
        assert body["weak_items"]["Numbers"][0]["weakest_activity"] == "Tracing"

    def test_focus_items_and_plan(self, recorded) -> None:
        focus = recorded.get("/api/analytics/child-a/focus-items", headers=auth("child-a")).json()
        plan = recorded.get(
            "/api/analytics/child-a/learning-plan",
            params={"plan_duration": 2},
            headers=auth("child-a"),
        ).json()

        assert focus[0]["item_name"] == "3"
        assert len(plan["daily_focus_items"]) == 2
        assert plan["daily_focus_items"][0]["focus_items"][0]["item_name"] == "3"

    def test_activity_weaknesses(self, recorded) -> None:
        response = recorded.get(
            "/api/analytics/child-a/activity-weaknesses",
            params={"activity": "Counting"},
            headers=auth("child-a"),
        )

        assert response.status_code == 200
        assert response.json()["top_weak_items"] == ["Numbers:3"]

    def test_activity_weaknesses_for_every_label(self, recorded) -> None:
        response = recorded.get("/api/analytics/child-a/activity-weaknesses", headers=auth("child-a"))

        body = response.json()
        assert response.status_code == 200
        assert len(body) == 7
        assert body["Counting"]["top_weak_items"] == ["Numbers:3"]
        assert body["Hearing"]["total_attempts"] == 0

    def test_reports(self, recorded) -> None:
        headers = auth("child-a")

        statistics = recorded.get("/api/analytics/child-a/statistics", headers=headers).json()
        report = recorded.get("/api/analytics/child-a/report", headers=headers).json()
        completion = recorded.get("/api/analytics/child-a/completion", headers=headers).json()
        recommendations = recorded.get("/api/analytics/child-a/recommendations", headers=headers).json()

        assert statistics["total_activities_attempted"] == 4
        assert report["total_activities"] == 4
        assert completion["category_completions"]["Numbers"]["attempted_items"] == 1
        assert recommendations[0]["priority"] == 1
