"""API tests for task transitions, suggestions and workflow reads."""

import time

import jwt
import pytest
from fastapi.testclient import TestClient

from spaceflow.api.deps import get_transition_service, get_workflow_service
from spaceflow.main import app
from tests.fakes import Harness, make_task, make_version, transition


def bearer(user_id="USR-1", expires_in=3600):
    token = jwt.encode(
        {"sub": user_id, "email": f"{user_id.lower()}@example.com", "exp": int(time.time()) + expires_in},
        "test-secret",
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def harness():
    version = make_version([
        transition("t-ab", "st-a", "st-b", name="Start"),
        transition("t-review", "st-a", "st-review", key="send-to-review",
                   conditions={"requiredFields": ["dueDate"]}),
        transition("t-done", "st-a", "st-done", conditions={"roles": ["ADMIN"]}),
    ])
    return Harness([version], [make_task()], roles={"USR-1": "MEMBER", "USR-admin": "ADMIN"})


@pytest.fixture
def client(harness):
    app.dependency_overrides[get_transition_service] = lambda: harness.transition_service
    app.dependency_overrides[get_workflow_service] = lambda: harness.workflow_service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestAuth:
    """Bearer token handling."""

    def test_missing_token(self, client):
        response = client.post("/api/v1/tasks/TSK-1/transition", json={"transition_id": "t-ab"})
        assert response.status_code == 401

    def test_expired_token(self, client):
        response = client.post(
            "/api/v1/tasks/TSK-1/transition",
            json={"transition_id": "t-ab"},
            headers=bearer(expires_in=-60),
        )
        assert response.status_code == 401


class TestTransitionEndpoint:
    """POST /tasks/{task_id}/transition"""

    def test_success(self, client, harness):
        response = client.post(
            "/api/v1/tasks/TSK-1/transition",
            json={"transitionId": "t-ab"},
            headers={**bearer(), "X-Correlation-Id": "COR-test"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["new_status_id"] == "st-b"
        assert body["workflow_status"]["id"] == "st-b"
        assert body["attempt_state"] == "COMMITTED"
        assert response.headers["X-Correlation-Id"] == "COR-test"
        assert harness.activity_repo.records[0].correlation_id == "COR-test"

    def test_missing_required_field(self, client, harness):
        response = client.post(
            "/api/v1/tasks/TSK-1/transition",
            json={"transition_key": "send-to-review"},
            headers=bearer(),
        )

        assert response.status_code == 422
        error = response.json()["detail"]["error"]
        assert error["code"] == "VALIDATION_FAILED"
        assert error["details"]["field"] == "dueDate"
        assert harness.task().workflow_status_id == "st-a"

    def test_role_gate(self, client):
        denied = client.post("/api/v1/tasks/TSK-1/transition", json={"transition_id": "t-done"}, headers=bearer())
        assert denied.status_code == 403
        assert denied.json()["detail"]["error"]["code"] == "PERMISSION_DENIED"

        allowed = client.post(
            "/api/v1/tasks/TSK-1/transition", json={"transition_id": "t-done"}, headers=bearer("USR-admin")
        )
        assert allowed.status_code == 200
        assert allowed.json()["workflow_status"]["is_final"] is True

    def test_stale_transition_conflicts(self, client):
        first = client.post("/api/v1/tasks/TSK-1/transition", json={"transition_id": "t-ab"}, headers=bearer())
        assert first.status_code == 200

        again = client.post("/api/v1/tasks/TSK-1/transition", json={"transition_id": "t-ab"}, headers=bearer())
        assert again.status_code == 409
        assert again.json()["detail"]["error"]["code"] == "INVALID_TRANSITION"

    def test_unknown_task(self, client):
        response = client.post("/api/v1/tasks/TSK-404/transition", json={"transition_id": "t-ab"}, headers=bearer())
        assert response.status_code == 404
        assert response.json()["detail"]["error"]["code"] == "TASK_NOT_FOUND"

    def test_neither_id_nor_key(self, client):
        response = client.post("/api/v1/tasks/TSK-1/transition", json={}, headers=bearer())
        assert response.status_code == 400


class TestReadEndpoints:
    """Available transitions, suggestions and workflow detail."""

    def test_available_transitions(self, client):
        response = client.get("/api/v1/tasks/TSK-1/transitions", headers=bearer())

        assert response.status_code == 200
        items = {item["transition_id"]: item for item in response.json()["items"]}
        assert items["t-ab"]["allowed"] is True
        assert items["t-review"]["field"] == "dueDate"
        assert items["t-done"]["family"] == "ROLE"

    def test_task_suggestion(self, client):
        response = client.get("/api/v1/tasks/TSK-1/suggestion", headers=bearer())

        assert response.status_code == 200
        suggestion = response.json()["suggestion"]
        assert suggestion["transition_id"] == "t-review"
        assert suggestion["confidence"] == 0.843

    def test_inline_suggestion(self, client):
        response = client.post(
            "/api/v1/suggestions/transition",
            json={
                "currentStatusKey": "todo",
                "transitions": [{"id": "t1", "fromKey": "todo", "toKey": "todo"}],
            },
            headers=bearer(),
        )
        assert response.status_code == 200
        assert response.json() == {"suggestion": None}

    def test_workflow_detail(self, client):
        response = client.get("/api/v1/workflows/WF-test?version=1", headers=bearer())

        assert response.status_code == 200
        body = response.json()
        assert body["version"]["version"] == 1
        assert body["published_versions"] == [1]

        missing = client.get("/api/v1/workflows/WF-test?version=5", headers=bearer())
        assert missing.status_code == 404

    def test_root(self, client):
        assert client.get("/").json()["name"] == "Spaceflow Workflow Engine"
