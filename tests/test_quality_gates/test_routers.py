"""Integration tests for the Quality Gates API routers using FastAPI TestClient."""
from __future__ import annotations

import json
import sys

import pytest
from fastapi.testclient import TestClient

from src.quality_gates.exceptions import GateEvaluationError
from src.quality_gates.services.build_step import BuildStep
from src.shared.models.quality_gates import GateStatus
from tests.conftest import TEST_NAME, FixedEvaluator


@pytest.fixture
def store_file(tmp_path):
    path = tmp_path / "instances.json"
    path.write_text(
        json.dumps({"instances": [
            {"name": TEST_NAME, "server_url": "http://sonar.test", "auth_token": "secret"},
        ]}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def client(store_file, monkeypatch):
    monkeypatch.setenv("STORE_PATH", str(store_file))
    # Clear the cached module so the app picks up the new STORE_PATH
    sys.modules.pop("src.quality_gates.main", None)
    from src.quality_gates.main import app

    with TestClient(app) as c:
        yield c


def _use_evaluator(client: TestClient, evaluator) -> None:
    client.app.state.build_step = BuildStep(evaluator=evaluator)


class TestHealthRouter:

    def test_health_returns_200(self, client):
        resp = client.get("/api/health")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["service_name"] == "quality-gates"
        assert data["instances_configured"] == 1
        assert data["uptime_seconds"] >= 0

    def test_degraded_without_instances(self, client):
        client.put("/api/instances", json=[])
        assert client.get("/api/health").json()["status"] == "degraded"

    def test_trace_id_header(self, client):
        resp = client.get("/api/health", headers={"X-Trace-ID": "abc"})
        assert resp.headers["X-Trace-ID"] == "abc"


class TestInstancesRouter:

    def test_list_hides_credentials(self, client):
        resp = client.get("/api/instances")

        assert resp.status_code == 200
        assert resp.json() == [{
            "name": TEST_NAME,
            "server_url": "http://sonar.test",
            "is_default": False,
            "has_credentials": True,
        }]
        assert "secret" not in resp.text

    def test_replace_persists(self, client, store_file):
        resp = client.put(
            "/api/instances",
            json=[{"name": "new", "server_url": "http://new.test"}, {"name": ""}],
        )

        assert resp.status_code == 200
        assert [i["name"] for i in resp.json()] == ["new", ""]
        saved = json.loads(store_file.read_text(encoding="utf-8"))
        assert [i["name"] for i in saved["instances"]] == ["new", ""]

    def test_replace_rejects_duplicate_names(self, client):
        resp = client.put("/api/instances", json=[{"name": "a"}, {"name": "a"}])

        assert resp.status_code == 422
        assert "Duplicate instance names: a" in resp.json()["detail"]
        assert client.get("/api/instances").json()[0]["name"] == TEST_NAME

    def test_replace_rejects_invalid_body(self, client):
        resp = client.put("/api/instances", json=[{"name": "a", "max_wait_time": -1}])
        assert resp.status_code == 422

    def test_default_instance(self, client):
        client.put("/api/instances", json=[{"name": "a"}, {"name": "b", "is_default": True}])
        resp = client.get("/api/instances/default")

        assert resp.status_code == 200
        assert resp.json()["name"] == "b"

    def test_default_instance_missing(self, client):
        client.put("/api/instances", json=[])
        resp = client.get("/api/instances/default")

        assert resp.status_code == 404
        assert resp.json() == {"detail": "No SonarQube instance is configured"}


class TestGateChecksRouter:

    def test_passed_gate(self, client):
        _use_evaluator(client, FixedEvaluator(GateStatus.PASSED))
        resp = client.post(
            "/api/gate-checks",
            json={"job": {"sonar_instance_name": TEST_NAME, "project_key": "projectKey"}},
        )

        assert resp.status_code == 200
        assert resp.json() == {
            "result": "SUCCESS",
            "log_lines": ["build passed: TRUE"],
            "instance_name": TEST_NAME,
        }

    def test_drift_is_a_failed_build_not_an_http_error(self, client):
        _use_evaluator(client, FixedEvaluator())
        resp = client.post("/api/gate-checks", json={"job": {"sonar_instance_name": "gone"}})

        assert resp.status_code == 200
        assert resp.json()["result"] == "FAILURE"
        assert resp.json()["log_lines"] == ["'gone' no longer exists."]

    def test_evaluation_error(self, client):
        _use_evaluator(client, FixedEvaluator(error=GateEvaluationError("TestException")))
        resp = client.post(
            "/api/gate-checks",
            json={"job": {"sonar_instance_name": TEST_NAME, "project_key": "k"}},
        )

        assert resp.json()["result"] == "FAILURE"
        assert "TestException" in resp.json()["log_lines"][0]

    def test_env_expansion(self, client):
        evaluator = FixedEvaluator(GateStatus.UNSTABLE)
        _use_evaluator(client, evaluator)
        resp = client.post(
            "/api/gate-checks",
            json={
                "job": {"sonar_instance_name": TEST_NAME, "project_key": "app:${BRANCH}"},
                "env": {"BRANCH": "dev"},
            },
        )

        assert resp.json()["result"] == "UNSTABLE"
        assert evaluator.calls[0][1].project_key == "app:dev"
